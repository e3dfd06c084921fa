class MediaError(Exception):
    """Base class for capture / device failures. None of these are fatal."""


class DeviceUnavailable(MediaError):
    """No microphone/camera found. Degrade to simulated values."""


class PermissionDenied(MediaError):
    """User rejected the capture permission prompt."""


class EnumerationFailure(MediaError):
    """Listing devices failed. Treated as 'no devices of any kind'."""
