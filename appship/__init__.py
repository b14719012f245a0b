"""appship - build, upload and announce mobile app releases."""

__version__ = "0.3.0"
