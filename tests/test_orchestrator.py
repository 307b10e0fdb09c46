from pathlib import Path

import pytest

from batchfetch.core.constants import CANCELLED_DETAIL
from batchfetch.domain.fetch import (
    BatchOrchestrator,
    CancelToken,
    DestinationResolver,
    parse_file_list,
)


@pytest.fixture
def orchestrator(manager, telemetry):
    return BatchOrchestrator(manager, telemetry)


@pytest.fixture
def resolver(tmp_path):
    resolver = DestinationResolver(tmp_path / "out")
    resolver.prepare()
    return resolver


def test_two_files_one_session_input_order(orchestrator, manager, factory, credential, resolver, remote_files):
    paths = parse_file_list(["/home/u/a.txt", "/home/u/b.txt", ""])
    session = manager.establish("u", "example.org", credential)

    report = orchestrator.run_batch(paths, session, resolver.resolve)

    assert report.total == 2
    assert report.succeeded == 2
    assert [o.request.remote_path for o in report.outcomes] == ["/home/u/a.txt", "/home/u/b.txt"]
    assert factory.create_count == 1
    for outcome in report.outcomes:
        assert Path(outcome.request.local_path).read_bytes() == remote_files[outcome.request.remote_path]


def test_failure_does_not_stop_the_batch(orchestrator, manager, credential, resolver):
    paths = ["/home/u/a.txt", "/var/missing.txt", "/home/u/b.txt"]
    session = manager.establish("u", "example.org", credential)

    report = orchestrator.run_batch(paths, session, resolver.resolve)

    assert report.total == 3
    assert report.succeeded == 2
    assert report.failed == 1
    assert len(report.outcomes) == 3
    missing = report.outcomes[1]
    assert missing.request.remote_path == "/var/missing.txt"
    assert not missing.succeeded
    assert missing.error_detail
    assert report.outcomes[2].succeeded
    assert not report.all_succeeded


def test_counts_match_outcomes(orchestrator, manager, factory, credential, resolver):
    factory.denied.add("/home/u/b.txt")
    paths = ["/home/u/a.txt", "/home/u/b.txt", "/nope", "/var/log/app/c.log"]
    session = manager.establish("u", "example.org", credential)

    report = orchestrator.run_batch(paths, session, resolver.resolve)

    assert report.total == len(paths)
    assert report.succeeded == sum(1 for o in report.outcomes if o.succeeded)
    assert [o.succeeded for o in report.outcomes] == [True, False, False, True]


def test_empty_batch(orchestrator, resolver):
    report = orchestrator.run_batch([], None, resolver.resolve)

    assert report.total == 0
    assert report.succeeded == 0
    assert report.outcomes == []


def test_duplicates_are_fetched_independently(orchestrator, manager, factory, credential, resolver):
    paths = ["/home/u/a.txt", "/home/u/a.txt"]
    session = manager.establish("u", "example.org", credential)

    report = orchestrator.run_batch(paths, session, resolver.resolve)

    assert report.total == 2
    assert report.succeeded == 2
    assert factory.clients[0].sftp.get_calls == paths


def test_outcome_callback_sees_each_file_before_the_next(orchestrator, manager, factory, credential, resolver):
    seen = []

    def on_outcome(index, outcome):
        seen.append((index, outcome.request.remote_path, len(factory.clients[0].sftp.get_calls)))

    session = manager.establish("u", "example.org", credential)
    orchestrator.run_batch(["/home/u/a.txt", "/home/u/b.txt"], session, resolver.resolve, on_outcome=on_outcome)

    assert seen == [(0, "/home/u/a.txt", 1), (1, "/home/u/b.txt", 2)]


def test_unmappable_path_is_a_failed_outcome(orchestrator, manager, credential, resolver):
    session = manager.establish("u", "example.org", credential)

    report = orchestrator.run_batch(["/home/u/", "/home/u/a.txt"], session, resolver.resolve)

    assert report.total == 2
    assert not report.outcomes[0].succeeded
    assert "does not name a file" in report.outcomes[0].error_detail
    assert report.outcomes[1].succeeded


def test_cancel_records_remaining_paths(orchestrator, manager, factory, credential, resolver):
    cancel = CancelToken()
    paths = ["/home/u/a.txt", "/home/u/b.txt", "/var/log/app/c.log"]

    def on_outcome(index, outcome):
        if index == 0:
            cancel.cancel()

    session = manager.establish("u", "example.org", credential)
    report = orchestrator.run_batch(paths, session, resolver.resolve, on_outcome=on_outcome, cancel=cancel)

    assert report.total == 3
    assert report.succeeded == 1
    assert [o.error_detail for o in report.outcomes[1:]] == [CANCELLED_DETAIL, CANCELLED_DETAIL]
    assert factory.clients[0].sftp.get_calls == ["/home/u/a.txt"]


def test_telemetry_records_each_fetch(orchestrator, manager, credential, resolver, telemetry, remote_files):
    session = manager.establish("u", "example.org", credential)
    orchestrator.run_batch(["/home/u/a.txt", "/missing"], session, resolver.resolve)

    assert len(telemetry.get_events("fetch")) == 2
    assert telemetry.total("fetch.bytes") == len(remote_files["/home/u/a.txt"])
