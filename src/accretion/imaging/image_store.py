"""Read and write 8-bit grayscale frames.

Frames live in a directory as one file per index, named by a format
pattern (default ``{index:03d}.pgm``). Decoding and encoding go through
OpenCV, so any single-channel format OpenCV handles works, with binary
PGM (P5) as the native frame format.

Errors on a single frame are raised as FrameIOError so the orchestrator
can record the failure and continue with the next frame.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional
import logging
import shutil

import cv2
import numpy as np

from accretion.contracts import FrameIOError

__all__ = ['PixelGrid', 'ImageStore', 'read_pgm_maxval']

logger = logging.getLogger(__name__)


@dataclass
class PixelGrid:
    """Row-major 8-bit intensity grid.

    Attributes
    ----------
    pixels : np.ndarray
        (height, width) uint8 array, C-contiguous. Pixel (row, col) sits
        at flat offset ``row * width + col``.
    maxval : int
        Grayscale depth declared in the PGM header (255 for other formats).
    """
    pixels: np.ndarray
    maxval: int = 255

    def __post_init__(self):
        self.pixels = np.ascontiguousarray(self.pixels, dtype=np.uint8)

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def width(self) -> int:
        return self.pixels.shape[1]


def read_pgm_maxval(path) -> Optional[int]:
    """Maxval from a PGM (P2/P5) header, or None if the file is not a PGM.

    Raises
    ------
    FrameIOError
        If the header is truncated or the maxval is not a valid depth.
    """
    with open(path, 'rb') as f:
        head = f.read(4096)
    if head[:2] not in (b'P2', b'P5'):
        return None

    # magic, width, height, maxval; '#' starts a comment running to end of line
    tokens = []
    for line in head.split(b'\n'):
        tokens.extend(line.split(b'#', 1)[0].split())
        if len(tokens) >= 4:
            break
    try:
        maxval = int(tokens[3])
    except (IndexError, ValueError):
        raise FrameIOError(f"Malformed PGM header: {path}") from None
    if not 0 < maxval < 256:
        raise FrameIOError(f"Unsupported PGM maxval {maxval} (8-bit frames only): {path}")
    return maxval


class ImageStore:
    """Directory of indexed grayscale frames.

    Examples
    --------
    >>> source = ImageStore("/data/camera")
    >>> grid = source.load_frame(1)         # /data/camera/001.pgm
    >>> downlink = ImageStore("/data/downlink")
    >>> source.copy_frame(1, downlink)
    """

    def __init__(self, root_dir, filename_pattern: str = "{index:03d}.pgm"):
        self.root_dir = Path(root_dir)
        self.filename_pattern = filename_pattern

    def path_for(self, index: int) -> Path:
        """Path of the frame with the given index."""
        return self.root_dir / self.filename_pattern.format(index=index)

    def load(self, path) -> PixelGrid:
        """Load one frame as a PixelGrid.

        Raises
        ------
        FrameIOError
            If the file is missing or cannot be decoded.
        """
        path = Path(path)
        if not path.is_file():
            raise FrameIOError(f"Frame not found: {path}")

        maxval = read_pgm_maxval(path) or 255
        pixels = cv2.imread(str(path), cv2.IMREAD_GRAYSCALE)
        if pixels is None:
            raise FrameIOError(f"Could not decode frame: {path}")

        logger.debug("Loaded %s (%dx%d, maxval %d)", path.name, pixels.shape[1], pixels.shape[0], maxval)
        return PixelGrid(pixels, maxval)

    def save(self, path, grid: PixelGrid) -> Path:
        """Write one frame, creating the parent directory if needed.

        The encoder always writes 8-bit depth; use copy_frame to keep a
        source frame's header.

        Raises
        ------
        FrameIOError
            If the encoder rejects the path or the write fails.
        """
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            ok = cv2.imwrite(str(path), grid.pixels)
        except cv2.error as e:
            raise FrameIOError(f"Could not encode frame {path}: {e}") from e
        if not ok:
            raise FrameIOError(f"Could not write frame: {path}")
        logger.debug("Saved %s", path.name)
        return path

    def load_frame(self, index: int) -> PixelGrid:
        return self.load(self.path_for(index))

    def copy_frame(self, index: int, destination: "ImageStore") -> Path:
        """Copy frame ``index`` byte for byte into another store under the same index.

        The frame is decoded first so a corrupt source is never transmitted.
        """
        source_path = self.path_for(index)
        self.load(source_path)

        target = destination.path_for(index)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source_path, target)
        except OSError as e:
            raise FrameIOError(f"Could not copy frame {source_path} to {target}: {e}") from e
        logger.debug("Copied %s -> %s", source_path.name, target)
        return target
