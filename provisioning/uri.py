"""
Build and parse otpauth:// enrollment URIs (Google Authenticator Key URI Format).

Reference: https://github.com/google/google-authenticator/wiki/Key-Uri-Format
"""

import urllib.parse
from dataclasses import dataclass
from typing import Optional

from core.errors import DescriptorParseError
from core.totp import DEFAULT_DIGITS, DEFAULT_PERIOD, Algorithm
from core.utils import normalize_secret, sanitise_label, validate_digits, validate_period

BASE_URL = "otpauth://totp"


@dataclass(frozen=True)
class ProvisioningURI:
    """
    Enrollment settings shared by every account of one issuer.

    One instance can render URIs for any number of secret/account pairs::

        uri = ProvisioningURI("Acme").generate(secret, "alice@example.com")
    """

    issuer: str
    algorithm: str = Algorithm.SHA1.value
    digits: int = DEFAULT_DIGITS
    period: int = DEFAULT_PERIOD
    base_url: str = BASE_URL
    counter: int = 0            # initial counter, emitted only for hotp base URLs

    def __post_init__(self) -> None:
        try:
            algorithm = Algorithm(self.algorithm)
        except ValueError:
            raise DescriptorParseError(
                f"Unsupported algorithm '{self.algorithm}'. Supported: SHA1, SHA256, SHA512.",
                self.base_url,
            ) from None
        object.__setattr__(self, "algorithm", algorithm.value)
        validate_digits(self.digits)
        validate_period(self.period)
        if self.counter < 0:
            raise ValueError(f"Counter must be non-negative, got {self.counter}")

    def _base(self) -> urllib.parse.SplitResult:
        try:
            base = urllib.parse.urlsplit(self.base_url)
        except ValueError as exc:
            raise DescriptorParseError(
                f"Cannot parse base URL '{self.base_url}': {exc}", self.base_url
            ) from exc
        if not base.scheme or not base.netloc:
            raise DescriptorParseError(
                f"Base URL '{self.base_url}' needs a scheme and an OTP type.",
                self.base_url,
            )
        return base

    def generate(self, secret: str, account_name: str) -> str:
        """
        Render the enrollment URI for ``account_name``.

        Args:
            secret:       Base32 secret, passed through as given.
            account_name: Account label, e.g. an e-mail address.

        Returns:
            ``otpauth://totp/<issuer>:<account>?secret=..&issuer=..&algorithm=..&digits=..&period=..``

        For an ``otpauth://hotp`` base URL the trailing ``period`` is replaced
        by ``counter``.

        Raises:
            DescriptorParseError: If ``base_url`` cannot be parsed.
        """
        base = self._base()
        label = urllib.parse.quote(f"{self.issuer}:{account_name}", safe=":@")
        path = f"{base.path.rstrip('/')}/{label}"
        params = [
            ("secret", secret),
            ("issuer", self.issuer),
            ("algorithm", self.algorithm),
            ("digits", str(self.digits)),
        ]
        if base.netloc.lower() == "hotp":
            params.append(("counter", str(self.counter)))
        else:
            params.append(("period", str(self.period)))
        query = urllib.parse.urlencode(params)
        return urllib.parse.urlunsplit((base.scheme, base.netloc, path, query, ""))


@dataclass
class OTPAuthURI:
    """Parsed representation of an otpauth:// URI."""

    otp_type: str       # "totp" or "hotp"
    label: str          # full label (issuer:account or just account)
    secret: str         # normalised base32 secret
    issuer: str         # issuer parameter (may be empty)
    account_name: str   # account name extracted from label
    algorithm: Algorithm
    digits: int
    period: int          # TOTP period (ignored for HOTP)
    counter: int         # HOTP counter (ignored for TOTP)

    def descriptor(self) -> ProvisioningURI:
        """Return the :class:`ProvisioningURI` that renders this URI again."""
        return ProvisioningURI(
            issuer=self.issuer,
            algorithm=self.algorithm.value,
            digits=self.digits,
            period=self.period,
            base_url=f"otpauth://{self.otp_type}",
            counter=self.counter,
        )


def _int_param(params: dict, name: str, default: Optional[int]) -> Optional[int]:
    raw = params.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        raise DescriptorParseError(f"'{name}' must be an integer.") from None


def parse_otpauth_uri(uri: str) -> OTPAuthURI:
    """
    Parse and validate an ``otpauth://`` URI.

    Args:
        uri: Full otpauth URI string.

    Returns:
        Populated :class:`OTPAuthURI` dataclass.

    Raises:
        DescriptorParseError:       If the URI structure is malformed.
        InvalidSecretEncodingError: If the secret is not valid base32.
        InvalidDigitCountError:     If ``digits`` is outside [6, 8].
        InvalidPeriodError:         If ``period`` is not positive.
    """
    uri = uri.strip()

    try:
        parsed = urllib.parse.urlsplit(uri)
    except ValueError as exc:
        raise DescriptorParseError(f"Cannot parse otpauth URI: {exc}") from exc

    if parsed.scheme.lower() != "otpauth":
        raise DescriptorParseError(f"Expected 'otpauth' scheme, got '{parsed.scheme}'.")

    otp_type = parsed.netloc.lower()
    if otp_type not in ("totp", "hotp"):
        raise DescriptorParseError(f"Unknown OTP type '{otp_type}'. Expected totp or hotp.")

    # Label is the path component (strip leading slash)
    raw_label = urllib.parse.unquote(parsed.path.lstrip("/"))
    if not raw_label:
        raise DescriptorParseError("Missing label in otpauth URI.")

    # Extract issuer and account from label  "Issuer:AccountName"
    if ":" in raw_label:
        label_issuer, account_name = raw_label.split(":", 1)
        label_issuer = sanitise_label(label_issuer.strip())
    else:
        label_issuer = ""
        account_name = raw_label

    account_name = sanitise_label(account_name.strip())

    params = dict(urllib.parse.parse_qsl(parsed.query))

    raw_secret = params.get("secret", "")
    if not raw_secret:
        raise DescriptorParseError("Missing 'secret' parameter in otpauth URI.")
    secret = normalize_secret(raw_secret)

    # Issuer – prefer the query param; fall back to label prefix
    issuer = sanitise_label(params.get("issuer", label_issuer).strip())

    alg_str = params.get("algorithm", Algorithm.SHA1.value)
    try:
        algorithm = Algorithm(alg_str)
    except ValueError:
        raise DescriptorParseError(
            f"Unsupported algorithm '{alg_str}'. Supported: SHA1, SHA256, SHA512."
        ) from None

    digits = _int_param(params, "digits", DEFAULT_DIGITS)
    validate_digits(digits)

    period = DEFAULT_PERIOD
    counter = 0
    if otp_type == "totp":
        period = _int_param(params, "period", DEFAULT_PERIOD)
        validate_period(period)
    else:
        counter = _int_param(params, "counter", None)
        if counter is None:
            raise DescriptorParseError("HOTP URI requires a 'counter' parameter.")
        if counter < 0:
            raise DescriptorParseError("'counter' must be non-negative.")

    full_label = f"{issuer}:{account_name}" if issuer else account_name

    return OTPAuthURI(
        otp_type=otp_type,
        label=full_label,
        secret=secret,
        issuer=issuer,
        account_name=account_name,
        algorithm=algorithm,
        digits=digits,
        period=period,
        counter=counter,
    )
