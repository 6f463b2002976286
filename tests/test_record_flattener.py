"""Tests for ca_graphql_fetch.record_flattener."""

import json
import os

import pytest

from ca_graphql_fetch.record_flattener import RecordFlattener

FIXTURES_DIR = os.path.join(os.path.dirname(__file__), "fixtures")


def load_search_fixture():
    fixture_path = os.path.join(FIXTURES_DIR, "search_response.json")
    with open(fixture_path) as f:
        raw = json.load(f)
    return raw["data"]["search"]["results"][0]["result"]


@pytest.fixture
def records():
    return load_search_fixture()


@pytest.fixture
def flat(records):
    return RecordFlattener().flatten(records[0])


def _bundle(code, *values, name=None):
    return {
        "name": name or code,
        "code": code,
        "dataType": "Text",
        "values": [{"value": v, "locale": "en_US"} for v in values],
    }


def test_identity_fields_copied(flat):
    assert flat["id"] == "101"
    assert flat["idno"] == "2019.1.7"
    assert flat["table"] == "ca_objects"


def test_single_value_is_scalar(flat):
    assert flat["preferred_labels.name"] == "Blue vase"


def test_multiple_values_are_list_in_order(flat):
    assert flat["RHS_keywords_list"] == ["ceramics", "glaze"]


def test_bundle_without_values_is_omitted(flat):
    assert "internal_notes" not in flat
    assert "ca_objects.internal_notes" not in flat


def test_ca_objects_prefix_stripped():
    record = {"id": "1", "idno": "x", "table": "ca_objects",
              "bundles": [_bundle("ca_objects.idno", "x-1")]}
    assert RecordFlattener().flatten(record)["idno"] == "x-1"


def test_other_table_prefix_kept(flat):
    assert flat["ca_entities.preferred_labels.displayname"] == "Anon."


def test_prefix_only_stripped_at_start():
    record = {"id": "1", "idno": "x", "table": "ca_objects",
              "bundles": [_bundle("ca_places.ca_objects.name", "Leiden")]}
    assert RecordFlattener().flatten(record) == {
        "id": "1", "idno": "x", "table": "ca_objects",
        "ca_places.ca_objects.name": "Leiden",
    }


def test_name_used_when_code_missing(records):
    flat = RecordFlattener().flatten(records[1])
    assert flat["access"] == "1"


def test_locale_and_data_type_discarded(flat):
    assert "locale" not in flat
    assert "dataType" not in flat
    assert all(not isinstance(v, dict) for v in flat.values())


def test_record_without_bundles():
    record = {"id": "7", "idno": "A.7", "table": "ca_objects"}
    assert RecordFlattener().flatten(record) == {"id": "7", "idno": "A.7", "table": "ca_objects"}


def test_zero_is_kept_as_a_value():
    record = {"id": "1", "idno": "x", "table": "ca_objects",
              "bundles": [_bundle("ca_objects.status", 0)]}
    assert RecordFlattener().flatten(record)["status"] == 0


def test_custom_prefix():
    record = {"id": "1", "idno": "x", "table": "ca_entities",
              "bundles": [_bundle("ca_entities.lifespan", "1900-1980")]}
    flat = RecordFlattener(prefix="ca_entities.").flatten(record)
    assert flat["lifespan"] == "1900-1980"


@pytest.mark.parametrize("bundle", [
    {"code": None, "name": None, "values": [{"value": "v"}]},
    {"values": [{"value": "v"}]},
])
def test_bundle_without_code_or_name_uses_empty_key(bundle):
    record = {"id": "1", "idno": "x", "table": "ca_objects", "bundles": [bundle]}
    assert RecordFlattener().flatten(record)[""] == "v"
