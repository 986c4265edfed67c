from txlog.extraction.redaction import MASK, mask_fields


def test_masks_only_listed_top_level_fields() -> None:
    body = {"test": "123", "test2": "123"}
    assert mask_fields(body, ["test"]) == {"test": "******", "test2": "123"}
    assert body == {"test": "123", "test2": "123"}


def test_masking_is_idempotent_and_keeps_keys() -> None:
    once = mask_fields({"password": "secret", "user": "bob"}, ["password"])
    twice = mask_fields(once, ["password"])
    assert once == twice
    assert list(twice) == ["password", "user"]


def test_missing_field_is_noop() -> None:
    assert mask_fields({"user": "bob"}, ["password"]) == {"user": "bob"}


def test_match_is_case_sensitive() -> None:
    assert mask_fields({"Password": "x"}, ["password"]) == {"Password": "x"}


def test_nested_objects_are_not_recursed() -> None:
    body = {"auth": {"password": "x"}, "password": "y"}
    assert mask_fields(body, ["password"]) == {"auth": {"password": "x"}, "password": MASK}


def test_non_mappings_and_empty_lists_pass_through() -> None:
    assert mask_fields([{"password": "x"}], ["password"]) == [{"password": "x"}]
    assert mask_fields("password", ["password"]) == "password"
    assert mask_fields({"password": "x"}, []) == {"password": "x"}
    assert mask_fields({"password": "x"}, None) == {"password": "x"}
