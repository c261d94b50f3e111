from pathlib import Path
import sys

ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from core import settings


def test_linux_data_dir_with_xdg():
    env = {"XDG_DATA_HOME": "/tmp/xdg"}
    result = settings.get_default_data_dir(
        settings.APP_NAME,
        platform="linux",
        env=env,
        home=Path("/home/test"),
    )
    assert result == Path("/tmp/xdg") / settings.APP_NAME


def test_linux_data_dir_default_home():
    result = settings.get_default_data_dir(
        settings.APP_NAME,
        platform="linux",
        env={},
        home=Path("/home/test"),
    )
    assert result == Path("/home/test/.local/share") / settings.APP_NAME


def test_macos_data_dir():
    result = settings.get_default_data_dir(
        settings.APP_NAME,
        platform="darwin",
        env={},
        home=Path("/Users/test"),
    )
    expected = Path("/Users/test/Library/Application Support") / settings.APP_NAME
    assert result == expected


def test_windows_data_dir_appdata():
    env = {"APPDATA": "C:/Users/test/AppData/Roaming"}
    result = settings.get_default_data_dir(
        settings.APP_NAME,
        platform="win32",
        env=env,
        home=Path("C:/Users/test"),
    )
    expected = Path(env["APPDATA"]) / settings.APP_NAME
    assert result == expected


def test_data_dir_override_wins():
    env = {"FIELDPULSE_DATA_DIR": "/srv/fieldpulse", "XDG_DATA_HOME": "/tmp/xdg"}
    result = settings.get_default_data_dir(
        settings.APP_NAME,
        platform="linux",
        env=env,
        home=Path("/home/test"),
    )
    assert result == Path("/srv/fieldpulse")


def test_runtime_paths_inside_data_dir():
    assert settings.STORAGE_DIR.parent == settings.DATA_DIR
    assert settings.LOG_DIR.parent == settings.DATA_DIR
    assert settings.SERVER_DB_PATH.parent == settings.DATA_DIR
    assert settings.SYNC.state_path == settings.STORAGE_DIR / "fieldpulse-storage.json"
    assert settings.SYNC.log_path.parent == settings.LOG_DIR


def test_sync_defaults():
    assert settings.SYNC.debounce_sec == 3.0
    assert settings.SYNC.request_timeout_sec == 30.0
    assert settings.PROFILE_DEFAULTS.overtime_threshold == 8.0
