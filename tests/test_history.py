import copy

import pytest

from claus import ConversationHistory, Message, Role


def _user(text):
    return Message.from_text(Role.USER, text)


def _assistant(text):
    return Message.from_text(Role.ASSISTANT, text)


def test_append_returns_new_value_and_keeps_original():
    empty = ConversationHistory()
    one = empty.append(_user("Hi"))

    assert len(empty) == 0
    assert list(empty) == []
    assert list(one) == [_user("Hi")]


def test_branches_are_isolated_and_share_prefix():
    base = ConversationHistory().append(_user("Hi")).append(_assistant("Hello")).append(_user("Tell me a joke"))
    left = base.append(_assistant("Why did the chicken..."))
    right = base.append(_assistant("Knock knock"))

    assert len(base) == 3
    assert list(left)[-1] == _assistant("Why did the chicken...")
    assert list(right)[-1] == _assistant("Knock knock")
    assert list(left)[:3] == list(base)
    assert list(right)[:3] == list(base)
    assert left.shares_prefix_with(right) == 3


def test_iteration_is_restartable_and_ordered():
    history = ConversationHistory([_user("a"), _assistant("b"), _user("c")])

    first = [m.text for m in history]
    second = [m.text for m in history]

    assert first == ["a", "b", "c"]
    assert second == first
    assert [m.text for m in reversed(history)] == ["c", "b", "a"]


def test_equality_is_structural():
    built_one_way = ConversationHistory().append(_user("a")).append(_assistant("b"))
    built_other_way = ConversationHistory([_user("a"), _assistant("b")])

    assert built_one_way == built_other_way
    assert built_one_way != built_other_way.append(_user("c"))
    assert built_one_way != ConversationHistory([_user("a"), _assistant("x")])


def test_clone_and_copy_are_free():
    history = ConversationHistory([_user("a")])

    assert history.clone() is history
    assert copy.copy(history) is history
    assert copy.deepcopy(history) is history


def test_prefix_branches_from_earlier_turn():
    history = ConversationHistory([_user("a"), _assistant("b"), _user("c"), _assistant("d")])
    retry = history.prefix(3).append(_assistant("d2"))

    assert [m.text for m in retry] == ["a", "b", "c", "d2"]
    assert [m.text for m in history] == ["a", "b", "c", "d"]
    assert history.shares_prefix_with(retry) == 3
    assert len(history.prefix(10)) == 4
    assert len(history.prefix(0)) == 0
    with pytest.raises(ValueError):
        history.prefix(-1)


def test_indexing():
    history = ConversationHistory([_user("a"), _assistant("b"), _user("c")])

    assert history[0].text == "a"
    assert history[-1].text == "c"
    assert [m.text for m in history[1:]] == ["b", "c"]
    assert history.last.text == "c"
    with pytest.raises(IndexError):
        history[3]


def test_append_rejects_non_messages():
    with pytest.raises(TypeError):
        ConversationHistory().append({"role": "user", "content": "hi"})


def test_long_history_appends_stay_cheap():
    history = ConversationHistory()
    for i in range(5000):
        history = history.append(_user(str(i)))

    assert len(history) == 5000
    assert history[4999].text == "4999"
