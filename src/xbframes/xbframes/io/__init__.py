"""IO sample decoding for IO data sample frames."""

from xbframes.io.sample import MIN_IO_SAMPLE_SIZE, IOSample, IOValue

__all__ = ["IOSample", "IOValue", "MIN_IO_SAMPLE_SIZE"]
