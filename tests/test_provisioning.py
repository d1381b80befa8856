"""Tests for provisioning.uri."""

import dataclasses
import urllib.parse

import pytest

from core.errors import (
    DescriptorParseError,
    InvalidDigitCountError,
    InvalidPeriodError,
    InvalidSecretEncodingError,
)
from core.totp import Algorithm
from provisioning.uri import ProvisioningURI, parse_otpauth_uri


# ── Builder ───────────────────────────────────────────────────────────────────

def test_generate_acme_descriptor() -> None:
    uri = ProvisioningURI("Acme", "sha1", 6, 30).generate("ABC123", "alice")
    parsed = urllib.parse.urlsplit(uri)
    assert parsed.scheme == "otpauth"
    assert parsed.netloc == "totp"
    assert urllib.parse.unquote(parsed.path.lstrip("/")) == "Acme:alice"
    params = urllib.parse.parse_qs(parsed.query)
    assert params["algorithm"] == ["SHA1"]
    assert params["digits"] == ["6"]
    assert params["period"] == ["30"]
    assert params["secret"] == ["ABC123"]
    assert params["issuer"] == ["Acme"]


def test_generate_exact_format() -> None:
    uri = ProvisioningURI("Acme", "sha256", 8, 60).generate("JBSWY3DPEHPK3PXP", "alice")
    assert uri == (
        "otpauth://totp/Acme:alice"
        "?secret=JBSWY3DPEHPK3PXP&issuer=Acme&algorithm=SHA256&digits=8&period=60"
    )


def test_generate_percent_encodes_values() -> None:
    uri = ProvisioningURI("Big Co&Sons").generate("JBSWY3DPEHPK3PXP", "bob smith@example.com")
    label, query = uri[len("otpauth://totp/"):].split("?", 1)
    assert " " not in label
    assert "issuer=Big+Co%26Sons" in query
    assert urllib.parse.unquote(label) == "Big Co&Sons:bob smith@example.com"


def test_generate_accepts_algorithm_member() -> None:
    uri = ProvisioningURI("Acme", Algorithm.SHA512).generate("JBSWY3DPEHPK3PXP", "a")
    assert "algorithm=SHA512" in uri


def test_descriptor_reusable_and_immutable() -> None:
    descriptor = ProvisioningURI("Acme")
    first = descriptor.generate("JBSWY3DPEHPK3PXP", "alice")
    second = descriptor.generate("GEZDGNBVGY3TQOJQ", "bob")
    assert "alice" in first and "bob" in second
    with pytest.raises(dataclasses.FrozenInstanceError):
        descriptor.issuer = "Other"  # type: ignore[misc]


def test_descriptor_rejects_bad_digits() -> None:
    with pytest.raises(InvalidDigitCountError):
        ProvisioningURI("Acme", digits=9)


def test_descriptor_rejects_bad_period() -> None:
    with pytest.raises(InvalidPeriodError):
        ProvisioningURI("Acme", period=0)


@pytest.mark.parametrize("algorithm", ["md5", "", "SHA3"])
def test_descriptor_rejects_unknown_algorithm(algorithm: str) -> None:
    with pytest.raises(DescriptorParseError, match="algorithm"):
        ProvisioningURI("Acme", algorithm)


def test_descriptor_normalises_algorithm() -> None:
    assert ProvisioningURI("Acme", "sha-256").algorithm == "SHA256"
    assert ProvisioningURI("Acme", Algorithm.SHA512).algorithm == "SHA512"


def test_descriptor_rejects_negative_counter() -> None:
    with pytest.raises(ValueError):
        ProvisioningURI("Acme", base_url="otpauth://hotp", counter=-1)


@pytest.mark.parametrize("base_url", ["not a url", "otpauth:", "http://[::1"])
def test_descriptor_bad_base_url(base_url: str) -> None:
    descriptor = ProvisioningURI("Acme", base_url=base_url)
    with pytest.raises(DescriptorParseError) as excinfo:
        descriptor.generate("JBSWY3DPEHPK3PXP", "alice")
    assert excinfo.value.base_url == base_url


def test_build_parse_roundtrip() -> None:
    descriptor = ProvisioningURI("Example", "SHA256", 8, 60)
    parsed = parse_otpauth_uri(descriptor.generate("JBSWY3DPEHPK3PXP", "alice@example.com"))
    assert parsed.account_name == "alice@example.com"
    assert parsed.issuer == "Example"
    assert parsed.secret == "JBSWY3DPEHPK3PXP"
    assert parsed.descriptor() == descriptor


# ── Valid TOTP URIs ───────────────────────────────────────────────────────────

def test_parse_basic_totp() -> None:
    uri = "otpauth://totp/Example%3Aalice%40example.com?secret=JBSWY3DPEHPK3PXP&issuer=Example"
    result = parse_otpauth_uri(uri)
    assert result.otp_type == "totp"
    assert result.account_name == "alice@example.com"
    assert result.issuer == "Example"
    assert result.secret == "JBSWY3DPEHPK3PXP"
    assert result.algorithm == Algorithm.SHA1
    assert result.digits == 6
    assert result.period == 30


def test_parse_lowercase_secret_normalised() -> None:
    result = parse_otpauth_uri("otpauth://totp/acc?secret=jbswy3dpehpk3pxp")
    assert result.secret == "JBSWY3DPEHPK3PXP"


def test_parse_totp_no_issuer_in_uri() -> None:
    result = parse_otpauth_uri("otpauth://totp/myaccount?secret=JBSWY3DPEHPK3PXP")
    assert result.account_name == "myaccount"
    assert result.issuer == ""
    assert result.label == "myaccount"


def test_parse_totp_issuer_from_label() -> None:
    result = parse_otpauth_uri("otpauth://totp/GitHub:john?secret=JBSWY3DPEHPK3PXP")
    assert result.issuer == "GitHub"
    assert result.account_name == "john"


# ── Valid HOTP URIs ───────────────────────────────────────────────────────────

def test_parse_hotp() -> None:
    uri = "otpauth://hotp/Example%3Aeve?secret=JBSWY3DPEHPK3PXP&counter=5"
    result = parse_otpauth_uri(uri)
    assert result.otp_type == "hotp"
    assert result.counter == 5
    assert result.descriptor().base_url == "otpauth://hotp"


def test_hotp_descriptor_roundtrip() -> None:
    uri = "otpauth://hotp/Acme:alice?secret=JBSWY3DPEHPK3PXP&issuer=Acme&counter=7"
    descriptor = parse_otpauth_uri(uri).descriptor()
    rebuilt = descriptor.generate("JBSWY3DPEHPK3PXP", "alice")
    assert rebuilt == (
        "otpauth://hotp/Acme:alice"
        "?secret=JBSWY3DPEHPK3PXP&issuer=Acme&algorithm=SHA1&digits=6&counter=7"
    )
    reparsed = parse_otpauth_uri(rebuilt)
    assert reparsed.otp_type == "hotp"
    assert reparsed.counter == 7
    assert reparsed.descriptor() == descriptor


# ── Error cases ───────────────────────────────────────────────────────────────

def test_parse_wrong_scheme() -> None:
    with pytest.raises(DescriptorParseError, match="scheme"):
        parse_otpauth_uri("http://totp/acc?secret=ABC")


def test_parse_unknown_type() -> None:
    with pytest.raises(DescriptorParseError, match="OTP type"):
        parse_otpauth_uri("otpauth://steam/acc?secret=JBSWY3DPEHPK3PXP")


def test_parse_missing_label() -> None:
    with pytest.raises(DescriptorParseError, match="label"):
        parse_otpauth_uri("otpauth://totp/?secret=JBSWY3DPEHPK3PXP")


def test_parse_missing_secret() -> None:
    with pytest.raises(DescriptorParseError, match="secret"):
        parse_otpauth_uri("otpauth://totp/acc")


def test_parse_bad_secret() -> None:
    with pytest.raises(InvalidSecretEncodingError):
        parse_otpauth_uri("otpauth://totp/acc?secret=ABC123")


def test_parse_invalid_algorithm() -> None:
    with pytest.raises(DescriptorParseError, match="algorithm"):
        parse_otpauth_uri("otpauth://totp/acc?secret=JBSWY3DPEHPK3PXP&algorithm=MD5")


def test_parse_invalid_digits() -> None:
    with pytest.raises(InvalidDigitCountError):
        parse_otpauth_uri("otpauth://totp/acc?secret=JBSWY3DPEHPK3PXP&digits=5")


def test_parse_non_integer_period() -> None:
    with pytest.raises(DescriptorParseError, match="period"):
        parse_otpauth_uri("otpauth://totp/acc?secret=JBSWY3DPEHPK3PXP&period=soon")


def test_parse_hotp_missing_counter() -> None:
    with pytest.raises(DescriptorParseError, match="counter"):
        parse_otpauth_uri("otpauth://hotp/acc?secret=JBSWY3DPEHPK3PXP")
