from .relay import AudioOSRelay, RelayState
