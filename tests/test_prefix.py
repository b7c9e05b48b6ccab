import pytest

from dirnotify.prefix import MessagePrefix


def test_default_prefix_with_timestamp(fixed_time):
    prefix = MessagePrefix(clock=lambda: fixed_time)
    assert prefix.render() == "05-03-2024 14:07:09 : File Watcher : "
    assert prefix.apply("hello") == "05-03-2024 14:07:09 : File Watcher : hello"


def test_prefix_without_timestamp():
    assert MessagePrefix("Archive", None).render() == "Archive : "


@pytest.mark.parametrize("text", ["", "  ", None])
def test_blank_text_rejected(text):
    with pytest.raises(ValueError):
        MessagePrefix(text)
