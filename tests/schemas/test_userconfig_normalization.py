import pytest

from ripen.schemas.user import UserConfig

pytestmark = pytest.mark.unit


def test_uppercase_aliases_accepted():
    user = UserConfig.model_validate({
        "IMAGE_PATH": "sunset.png",
        "BASE_DIR": "/tmp/ripen",
        "SCHEMA_NAME": "sunset",
        "RIPENESS": 128,
        "INTERVAL_SEC": 30,
        "WAIT_FOR_PREVIOUS": True,
        "ALIGN_SECOND": 0,
        "MAX_COLOR": 255,
        "LOG_LEVEL": "debug",
    })

    assert user.image_path == "sunset.png"
    assert user.schema_name == "sunset"
    assert user.ripeness == 128
    assert user.interval_sec == 30.0
    assert isinstance(user.interval_sec, float)
    assert user.wait_for_previous is True
    assert user.align_second == 0
    assert user.max_color == 255
    assert user.log_level == "DEBUG"


def test_lowercase_names_accepted():
    user = UserConfig(image_path="a.png", ripeness=10)
    assert user.image_path == "a.png"
    assert user.ripeness == 10


def test_unknown_keys_ignored():
    user = UserConfig.model_validate({"IMAGE_PATH": "a.png", "LEGACY_KEY": 1})
    assert user.image_path == "a.png"


def test_overrides_only_contain_set_values():
    overrides = UserConfig(ripeness=10).to_internal_overrides()
    assert overrides == {"bake": {"ripeness": 10}}


def test_base_dir_maps_to_store_dir():
    overrides = UserConfig(base_dir="/data/ripen").to_internal_overrides()

    assert overrides["base_dir"] == "/data/ripen"
    assert overrides["store"]["db_dir"] == "/data/ripen/store"


def test_nested_overrides_win_over_flat():
    user = UserConfig(ripeness=10, bake={"ripeness": 20})
    assert user.to_internal_overrides()["bake"]["ripeness"] == 20
