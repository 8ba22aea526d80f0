import pytest

from core.services.username import generate_username_suggestions, pick_available_usernames, validate_username


@pytest.mark.parametrize("username", [
    "1joao",
    "joao.",
    "joao_",
    "jo..ao",
    "jo__ao",
    "jo._ao",
    "jo",
    "joão",
    "jo ao",
    "a" * 31,
])
def test_invalid_usernames_are_rejected(username):
    valid, error = validate_username(username)
    assert not valid
    assert error


@pytest.mark.parametrize("username", ["joao", "joao.silva", "maria_2", "Ana.B.Costa"])
def test_valid_usernames(username):
    assert validate_username(username) == (True, None)


def test_suggestions_strip_accents_and_combine_names():
    assert generate_username_suggestions("João da Silva") == [
        "joao.silva", "joaosilva", "joao.ds", "jd.silva", "joao",
    ]


def test_suggestions_for_blank_name():
    assert generate_username_suggestions("  ") == []


def test_taken_names_get_a_numeric_suffix():
    taken = {"joao.silva", "joaosilva", "joaosilva2"}
    picked = pick_available_usernames("João Silva", lambda name: name not in taken)
    assert picked == ["joao.silva2", "joaosilva3", "joao.s"]
