"""
Destination resolution

Maps a remote path to a file under the batch output root.
"""
import posixpath
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

from ...core.constants import OUTPUT_DIR_PREFIX, OUTPUT_DIR_TIME_FORMAT
from ...core.exceptions import ResourceCreationError
from ...core.logging import get_logger

logger = get_logger(__name__)


def synthesize_output_root(base: Optional[Path] = None, now: Optional[datetime] = None) -> Path:
    """
    Pick a fresh directory name for a run: <base>/fetch-YYYYmmdd-HHMMSS,
    suffixed -1, -2, ... when the name is taken.
    """
    base = Path(base) if base is not None else Path.cwd()
    stamp = (now or datetime.now()).strftime(OUTPUT_DIR_TIME_FORMAT)
    candidate = base / f"{OUTPUT_DIR_PREFIX}{stamp}"
    counter = 1
    while candidate.exists():
        candidate = base / f"{OUTPUT_DIR_PREFIX}{stamp}-{counter}"
        counter += 1
    return candidate


class DestinationResolver:
    """Resolve local targets for remote paths under one output root"""

    def __init__(self, root: Path, preserve_structure: bool = True):
        """
        Args:
            root: Batch output directory; made absolute against the current
                working directory
            preserve_structure: Mirror the remote directory layout under root;
                otherwise every file lands directly in root by basename
        """
        self.root = Path(root).expanduser().absolute()
        self.preserve_structure = preserve_structure
        # local path -> remote path that owns it in this batch
        self._claimed: Dict[str, str] = {}

    def prepare(self) -> Path:
        """
        Create the output root.

        Raises:
            ResourceCreationError: Nothing could be written, so the batch can't run
        """
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ResourceCreationError(f"Cannot create output directory {self.root}: {e}", code=e.errno) from e
        return self.root

    def resolve(self, remote_path: str) -> str:
        """
        Local path for a remote path.

        ".." segments are collapsed against the remote root, so the result
        always stays inside the output root. The same remote path always maps
        to the same local path; a different remote path landing on a name
        already handed out gets a -1, -2, ... suffix before its extension.

        Raises:
            ValueError: The remote path names no file
        """
        # "/" prefix makes normpath swallow leading ".." segments
        normalized = posixpath.normpath("/" + remote_path.lstrip("~"))
        relative = normalized.lstrip("/")
        if not relative or remote_path.endswith("/"):
            raise ValueError(f"Remote path does not name a file: {remote_path!r}")

        if self.preserve_structure:
            target = self.root.joinpath(*relative.split("/"))
        else:
            target = self.root / posixpath.basename(relative)

        local = str(target)
        counter = 1
        while self._claimed.get(local, remote_path) != remote_path:
            local = str(target.with_name(f"{target.stem}-{counter}{target.suffix}"))
            counter += 1

        if local not in self._claimed:
            if local != str(target):
                logger.warning(f"{remote_path} collides with {self._claimed[str(target)]}, saving as {local}")
            self._claimed[local] = remote_path
        return local

    __call__ = resolve
