import re

from app.identifiers import new_id, new_token


def test_new_id_has_prefix_and_suffix():
    value = new_id("evt")
    assert re.fullmatch(r"evt_[0-9a-z]{7,}", value)


def test_new_ids_do_not_collide_in_practice():
    assert len({new_id("p") for _ in range(1000)}) == 1000


def test_new_token_shape():
    token = new_token()
    assert len(token) == 20
    assert token.isalnum()
    assert len({new_token() for _ in range(1000)}) == 1000
