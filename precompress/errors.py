"""Error types raised by precompress."""


class PrecompressError(Exception):
    """Base class for precompress errors."""
    pass


class ConfigError(PrecompressError):
    """Options reference a codec that cannot be resolved."""
    pass


class AssetFailure(PrecompressError):
    """Compressing a single asset failed.

    Recorded as a non-fatal diagnostic; the asset is skipped for the stage
    in which the failure happened.
    """

    def __init__(self, asset_name: str, cause: BaseException, message: str):
        self.asset_name = asset_name
        self.cause = cause
        super().__init__(message)


class CodecFailure(AssetFailure):
    """A codec failed while compressing a single asset."""

    def __init__(self, asset_name: str, codec: str, cause: BaseException):
        self.codec = codec
        super().__init__(asset_name, cause, f"Codec '{codec}' failed for asset '{asset_name}': {cause}")


class FilenameFailure(AssetFailure):
    """The output name of an asset could not be rendered."""

    def __init__(self, asset_name: str, cause: BaseException):
        super().__init__(asset_name, cause, f"Could not render output name for asset '{asset_name}': {cause}")
