import pytest

import run_ai_check
from modules.ai.resilient_client import FALLBACK_ANSWER


@pytest.fixture
def isolated(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(run_ai_check, "setup_logging", lambda **kwargs: None)
    monkeypatch.setattr(run_ai_check, "setup_signal_handlers", lambda token: None)
    for name in ("BASE_URL", "API_KEY", "MODEL"):
        monkeypatch.setenv(name, "placeholder")
        monkeypatch.delenv(name)
    return tmp_path


def test_missing_configuration_exits_with_code_2(isolated):
    missing_env = isolated / "missing.env"
    assert run_ai_check.main(["--env-file", str(missing_env)]) == 2


def test_prints_answer(isolated, monkeypatch, capsys):
    sent = []

    class FakeClient:
        def __init__(self, config, **kwargs):
            self.config = config

        def send_chat_request(self, content, cancel_token=None):
            sent.append(content)
            return "Hi there"

    env_file = isolated / ".env"
    env_file.write_text("BASE_URL=http://localhost:1234\nAPI_KEY=k\nMODEL=m\n", encoding="utf-8")
    monkeypatch.setattr(run_ai_check, "ResilientAIClient", FakeClient)

    assert run_ai_check.main(["Is this job relevant?", "--env-file", str(env_file)]) == 0
    assert sent == ["Is this job relevant?"]
    assert "AI answer: Hi there" in capsys.readouterr().out


def test_fallback_answer_exits_with_code_1(isolated, monkeypatch):
    from modules import metrics

    class FailingClient:
        def __init__(self, config, **kwargs):
            pass

        def send_chat_request(self, content, cancel_token=None):
            metrics.inc("ai_requests_failed")
            return FALLBACK_ANSWER

    env_file = isolated / ".env"
    env_file.write_text("BASE_URL=http://localhost:1234\nAPI_KEY=k\nMODEL=m\n", encoding="utf-8")
    monkeypatch.setattr(run_ai_check, "ResilientAIClient", FailingClient)

    assert run_ai_check.main(["--env-file", str(env_file)]) == 1


def test_stop_request_skips_remaining_retries(isolated, monkeypatch):
    created = {}

    class RecordingClient:
        def __init__(self, config, policy=None, **kwargs):
            created["policy"] = policy

        def send_chat_request(self, content, cancel_token=None):
            return "yes"

    env_file = isolated / ".env"
    env_file.write_text("BASE_URL=http://localhost:1234\nAPI_KEY=k\nMODEL=m\n", encoding="utf-8")
    monkeypatch.setattr(run_ai_check, "ResilientAIClient", RecordingClient)

    assert run_ai_check.main(["--env-file", str(env_file)]) == 0
    assert created["policy"].abort_on_cancel is True
    assert created["policy"].max_attempts == 3
    assert created["policy"].delay(1) == 2.0


def test_first_ctrl_c_cancels_second_one_interrupts(monkeypatch):
    import signal
    from modules.fault_tolerance import CancellationToken

    installed = {}
    monkeypatch.setattr(run_ai_check.signal, "signal", lambda signum, handler: installed.__setitem__(signum, handler))
    token = CancellationToken()

    run_ai_check.setup_signal_handlers(token)
    installed[signal.SIGINT](signal.SIGINT, None)

    assert token.cancelled
    assert installed[signal.SIGINT] is signal.default_int_handler
