import threading

from livecal.main import run


def test_run_once_prints_channels_and_next_wakeup(tmp_path, capsys):
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text(
        """
timezone: UTC
calendar:
  events:
    - title: Far future
      start: "2099-01-01T10:00:00+00:00"
      end: "2099-01-01T11:00:00+00:00"
""",
        encoding="utf-8",
    )

    controller = run(str(cfg_path), once=True)

    out = capsys.readouterr().out
    assert "current_presence = OFF" in out
    assert "next_title = Far future" in out
    assert "status = online (none)" in out
    assert "next wake-up = 2099-01-01T10:00:00+00:00" in out
    assert controller.pending_wakeup is None


def test_run_once_reports_configuration_error(tmp_path, capsys):
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text("live_event:\n  filter_value: standup\n", encoding="utf-8")

    run(str(cfg_path), once=True)

    out = capsys.readouterr().out
    assert "status = offline (configuration_error): Text filter settings are incomplete." in out
    assert "next wake-up = none" in out


def test_run_until_stopped_disposes_controller(tmp_path, capsys):
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text("timezone: UTC\n", encoding="utf-8")
    stop = threading.Event()
    stop.set()

    controller = run(str(cfg_path), stop=stop)

    out = capsys.readouterr().out
    assert "Tracking 0 events" in out
    assert "current_presence = OFF" in out
    assert controller.state.value == "disposed"
