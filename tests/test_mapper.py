from datetime import datetime, timedelta, timezone

import pytest

from linktracker.api_types import AddLinkRequest
from linktracker.domain import GITHUB_TYPE, STACKOVERFLOW_TYPE
from linktracker.errors import LinkTypeError, LinkValidateError
from linktracker.mapper import map_add_link_request


@pytest.mark.parametrize(
    ("request_", "want_type"),
    [
        (
            AddLinkRequest(link="https://github.com/test", tags=["tag"], filters=["filter"]),
            GITHUB_TYPE,
        ),
        (
            AddLinkRequest(link="https://stackoverflow.com/test", tags=["tag"], filters=["filter"]),
            STACKOVERFLOW_TYPE,
        ),
        (AddLinkRequest(link="https://github.com/test"), GITHUB_TYPE),
    ],
    ids=["github", "stackoverflow", "last-check"],
)
def test_map_add_link_request_success(request_, want_type):
    link = map_add_link_request(1, request_)

    assert link.user_add_id == 1
    if request_.tags is not None:
        assert link.tags == request_.tags
    if request_.filters is not None:
        assert link.filters == request_.filters
    assert link.url == request_.link
    assert link.type == want_type
    assert abs(datetime.now(timezone.utc) - link.last_check) <= timedelta(seconds=1)


def test_missing_tags_give_empty_lists():
    link = map_add_link_request(1, AddLinkRequest(link="https://github.com/test"))
    assert link.tags == []
    assert link.filters == []


@pytest.mark.parametrize(
    ("request_", "error_type"),
    [
        (AddLinkRequest(), LinkValidateError),
        (AddLinkRequest(link=""), LinkValidateError),
        (AddLinkRequest(link="https://test.com"), LinkTypeError),
    ],
    ids=["empty", "empty-string", "unsupported"],
)
def test_map_add_link_request_failure(request_, error_type):
    with pytest.raises(error_type):
        map_add_link_request(1, request_)


def test_link_prefix_must_be_https():
    with pytest.raises(LinkTypeError, match="unsupported link type"):
        map_add_link_request(1, AddLinkRequest(link="http://github.com/test"))