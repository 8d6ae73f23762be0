"""
Config parsing - shape validation, bucket URL resolution, redaction.
"""
from __future__ import annotations

import json

import pytest

from s3_destination.core.errors import MalformedConfiguration
from s3_destination.core.models import S3_DESTINATION_TYPE, Configuration
from s3_destination.services.config_parser import REDACTED, parse_config, sanitize_config


def test_parses_virtual_hosted_bucket(config_with):
    cfg = parse_config(config_with("https://slamdata-public-test.s3.amazonaws.com"))
    assert isinstance(cfg, Configuration)
    assert cfg.bucket.name == "slamdata-public-test"
    assert cfg.bucket.endpoint_url is None
    assert cfg.credentials.access_key == "AKIDEXAMPLE"
    assert cfg.region == "us-east-1"


def test_region_taken_from_host_when_credentials_omit_it():
    raw = {
        "bucket": "https://my.dotted.bucket.s3.eu-west-1.amazonaws.com",
        "credentials": {"accessKey": "a", "secretKey": "s"},
    }
    cfg = parse_config(raw)
    assert isinstance(cfg, Configuration)
    assert cfg.bucket.name == "my.dotted.bucket"
    assert cfg.bucket.region == "eu-west-1"
    assert cfg.region == "eu-west-1"


def test_path_style_endpoint(config_with):
    cfg = parse_config(config_with("http://localhost:9000/exports/ignored/suffix"))
    assert isinstance(cfg, Configuration)
    assert cfg.bucket.name == "exports"
    assert cfg.bucket.endpoint_url == "http://localhost:9000"


def test_accepts_json_text(config_with):
    cfg = parse_config(json.dumps(config_with("https://b.s3.amazonaws.com")))
    assert isinstance(cfg, Configuration)
    assert cfg.bucket.name == "b"


def test_secret_not_in_repr(config_with):
    cfg = parse_config(config_with("https://b.s3.amazonaws.com"))
    assert "wJalrXUtnFEMI" not in repr(cfg)


@pytest.mark.parametrize(
    "raw, reason",
    [
        ("{not json", "Configuration is not valid JSON"),
        ([1, 2], "Configuration must be an object"),
        ({"credentials": {"accessKey": "a", "secretKey": "s"}}, "Missing required field: bucket"),
        ({"bucket": "https://b.s3.amazonaws.com"}, "Missing required field: credentials"),
        (
            {"bucket": "https://b.s3.amazonaws.com", "credentials": {"accessKey": "a", "secretKey": "s"}, "x": 1},
            "Unexpected field: x",
        ),
        ({"bucket": 42, "credentials": {"accessKey": "a", "secretKey": "s"}}, "Field 'bucket' must be a string"),
        ({"bucket": "https://b.s3.amazonaws.com", "credentials": "k"}, "Field 'credentials' must be an object"),
        (
            {"bucket": "https://b.s3.amazonaws.com", "credentials": {"secretKey": "s"}},
            "Missing required field: credentials.accessKey",
        ),
        (
            {"bucket": "https://b.s3.amazonaws.com", "credentials": {"accessKey": "a", "secretKey": ""}},
            "Field 'credentials.secretKey' must be a non-empty string",
        ),
        (
            {"bucket": "https://b.s3.amazonaws.com", "credentials": {"accessKey": 1, "secretKey": "s"}},
            "Field 'credentials.accessKey' must be a non-empty string",
        ),
        (
            {"bucket": "https://b.s3.amazonaws.com", "credentials": {"accessKey": "a", "secretKey": "s", "region": 3}},
            "Field 'credentials.region' must be a string",
        ),
        (
            {"bucket": "https://b.s3.amazonaws.com", "credentials": {"accessKey": "a", "secretKey": "s", "token": "t"}},
            "Unexpected field: credentials.token",
        ),
        ({"bucket": "not a url", "credentials": {"accessKey": "a", "secretKey": "s"}}, "Field 'bucket' is not a valid URL"),
        ({"bucket": "ftp://b.example.com/x", "credentials": {"accessKey": "a", "secretKey": "s"}}, "Field 'bucket' is not a valid URL"),
        ({"bucket": "http://host:abc/x", "credentials": {"accessKey": "a", "secretKey": "s"}}, "Field 'bucket' is not a valid URL"),
        ({"bucket": "http://localhost:9000/", "credentials": {"accessKey": "a", "secretKey": "s"}}, "Field 'bucket' does not name a bucket"),
    ],
)
def test_malformed(raw, reason):
    err = parse_config(raw)
    assert isinstance(err, MalformedConfiguration)
    assert err.reason == reason
    assert err.destination_type == S3_DESTINATION_TYPE
    assert err.original_config is raw


def test_sanitize_redacts_secrets_only(config_with):
    raw = config_with("https://b.s3.amazonaws.com")
    out = sanitize_config(raw)
    assert out["bucket"] == raw["bucket"]
    assert out["credentials"] == {"accessKey": REDACTED, "secretKey": REDACTED, "region": "us-east-1"}
    # input untouched
    assert raw["credentials"]["secretKey"] == "wJalrXUtnFEMI/K7MDENG"


def test_sanitize_non_object_credentials():
    assert sanitize_config({"bucket": "x", "credentials": "AKIA:secret"})["credentials"] == REDACTED
    assert sanitize_config("{broken") == REDACTED
    assert sanitize_config(None) is None
