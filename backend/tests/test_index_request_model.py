"""Tests for the IndexRequest model."""

import pytest
from pydantic import ValidationError

from models.index_request import UINT32_MAX, IndexRequest


def test_decode_valid_request():
    request = IndexRequest.model_validate_json('{"CloneURL": "https://example.com/r.git", "RepoID": 42}')

    assert request.CloneURL == "https://example.com/r.git"
    assert request.RepoID == 42


def test_repo_id_upper_bound():
    request = IndexRequest.model_validate_json(f'{{"RepoID": {UINT32_MAX}}}')

    assert request.RepoID == UINT32_MAX


def test_extra_field_rejected():
    with pytest.raises(ValidationError):
        IndexRequest.model_validate_json('{"CloneURL": "u", "RepoID": 1, "Name": "r"}')


def test_no_string_coercion():
    with pytest.raises(ValidationError):
        IndexRequest.model_validate_json('{"RepoID": "1"}')


def test_request_is_frozen():
    request = IndexRequest(CloneURL="u", RepoID=1)

    with pytest.raises(ValidationError):
        request.RepoID = 2


def test_key_names_match_case_insensitively():
    request = IndexRequest.model_validate_json('{"cloneURL": "https://example.com/r.git", "repoid": 7}')

    assert request.CloneURL == "https://example.com/r.git"
    assert request.RepoID == 7


def test_unknown_key_still_rejected_after_case_folding():
    with pytest.raises(ValidationError):
        IndexRequest.model_validate_json('{"cloneurl": "u", "RepoIdentifier": 7}')
