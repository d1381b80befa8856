"""
Exception hierarchy for otpkit.

Every validation error also derives from :class:`ValueError` so callers that
only care about "bad input" can catch that; callers that need to branch on
the cause can catch the specific class and inspect its attributes.
"""


class OTPError(Exception):
    """Base class for all otpkit errors."""


class InvalidDigitCountError(OTPError, ValueError):
    """Digit count outside the supported range."""

    def __init__(self, digits: int, minimum: int = 6, maximum: int = 8) -> None:
        self.digits = digits
        self.minimum = minimum
        self.maximum = maximum
        super().__init__(
            f"Digit count must be between {minimum} and {maximum}, got {digits}."
        )


class InvalidSecretEncodingError(OTPError, ValueError):
    """Secret is empty or not valid unpadded base32."""

    def __init__(self, reason: str, secret_length: int = 0) -> None:
        # Never include the secret itself.
        self.reason = reason
        self.secret_length = secret_length
        super().__init__(f"Invalid base32 secret: {reason}")


class InvalidPeriodError(OTPError, ValueError):
    """Time step is not a positive integer number of seconds."""

    def __init__(self, period: object) -> None:
        self.period = period
        super().__init__(f"Period must be a positive number of seconds, got {period!r}.")


class RandomSourceError(OTPError, OSError):
    """The operating system entropy source could not supply bytes."""


class DescriptorParseError(OTPError, ValueError):
    """An otpauth base URL or URI could not be parsed."""

    def __init__(self, message: str, base_url: str = "") -> None:
        self.base_url = base_url
        super().__init__(message)
