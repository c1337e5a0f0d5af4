from src.fleetfare.config import Settings


def test_blank_default_coordinate_disables_fallback(monkeypatch):
    monkeypatch.setenv("FLEETFARE_DEFAULT_LATITUDE", "")
    monkeypatch.setenv("FLEETFARE_DEFAULT_LONGITUDE", "")

    settings = Settings(_env_file=None)

    assert settings.default_latitude is None
    assert settings.default_longitude is None
    assert settings.has_default_location is False


def test_default_coordinate_from_env(monkeypatch):
    monkeypatch.setenv("FLEETFARE_DEFAULT_LATITUDE", "-25.5")
    monkeypatch.setenv("FLEETFARE_DEFAULT_LONGITUDE", "-54.6")

    settings = Settings(_env_file=None)

    assert settings.default_latitude == -25.5
    assert settings.default_longitude == -54.6
    assert settings.has_default_location
