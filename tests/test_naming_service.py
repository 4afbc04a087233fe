import re

from image_upload.services.naming_service import generate_name, resolve_name, sanitize_name

_GENERATED = re.compile(r"^[0-9a-f]{32}_[e-q]{13}$")


def test_generated_names_differ_in_immediate_succession() -> None:
    names = [generate_name() for _ in range(1000)]

    assert len(set(names)) == len(names)
    assert all(_GENERATED.match(name) for name in names)


def test_generated_suffix_uses_each_letter_once() -> None:
    suffix = generate_name().split("_", 1)[1]

    assert sorted(suffix) == list("efghijklmnopq")


def test_sanitize_strips_markup_and_path() -> None:
    assert sanitize_name("<script>x</script>evil") == "xevil"
    assert sanitize_name("../../etc/passwd") == "passwd"
    assert sanitize_name("C:\\temp\\my photo (1)") == "my_photo_1"


def test_sanitize_keeps_safe_names() -> None:
    assert sanitize_name("profile-pic_2024.v2") == "profile-pic_2024.v2"


def test_resolve_name_falls_back_to_generated() -> None:
    assert _GENERATED.match(resolve_name(None))
    assert _GENERATED.match(resolve_name("../"))
    assert resolve_name("avatar") == "avatar"
