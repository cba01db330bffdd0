import pytest

from practice_availability import issue_token
from practice_availability.auth.jwt_handler import decode_access_token


@pytest.fixture(autouse=True)
def isolated_sessions(monkeypatch: pytest.MonkeyPatch, session_factory) -> None:
    monkeypatch.setattr(issue_token, 'SessionLocal', session_factory)


def test_prints_token_for_user(practitioner, capsys: pytest.CaptureFixture[str]) -> None:
    issue_token.main([practitioner.email, '--minutes', '5'])

    payload = decode_access_token(capsys.readouterr().out.strip())
    assert payload['sub'] == practitioner.id
    assert payload['role'] == 'practitioner'


def test_unknown_email_exits_with_error(db, capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exit_info:
        issue_token.main(['nobody@example.com'])

    assert exit_info.value.code == 1
    assert 'nobody@example.com' in capsys.readouterr().err
