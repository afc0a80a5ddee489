from __future__ import annotations

import re
from pathlib import Path

import pytest

from share_cli.domain.entities import Endpoint, PhaseRecord, Session, ShareRequest
from share_cli.domain.errors import PhaseTransitionError
from share_cli.domain.phases import PhaseName, PhaseState, is_allowed_transition
from share_cli.domain.tokens import (
    generate_access_token,
    generate_password,
    subdomain_from_token,
)


@pytest.mark.parametrize(
    ("current", "target", "allowed"),
    [
        (PhaseState.PENDING, PhaseState.STARTED, True),
        (PhaseState.STARTED, PhaseState.DONE, True),
        (PhaseState.STARTED, PhaseState.ERRORED, True),
        (PhaseState.PENDING, PhaseState.DONE, False),
        (PhaseState.DONE, PhaseState.STARTED, False),
        (PhaseState.DONE, PhaseState.PENDING, False),
        (PhaseState.ERRORED, PhaseState.DONE, False),
    ],
)
def test_forward_only_transitions(
    current: PhaseState,
    target: PhaseState,
    allowed: bool,
) -> None:
    assert is_allowed_transition(PhaseName.SERVER, current, target) is allowed


def test_download_phase_can_rearm_from_terminal_states() -> None:
    assert is_allowed_transition(PhaseName.DOWNLOAD, PhaseState.DONE, PhaseState.PENDING)
    assert is_allowed_transition(PhaseName.DOWNLOAD, PhaseState.ERRORED, PhaseState.PENDING)
    assert not is_allowed_transition(PhaseName.DOWNLOAD, PhaseState.STARTED, PhaseState.PENDING)


def test_phase_record_rejects_backward_moves() -> None:
    record = PhaseRecord(phase=PhaseState.DONE, label="Server started")

    with pytest.raises(PhaseTransitionError):
        record.advance(PhaseName.SERVER, PhaseState.STARTED)


def test_phase_record_same_state_only_updates_label() -> None:
    record = PhaseRecord(phase=PhaseState.PENDING, label="Download")

    updated = record.advance(PhaseName.DOWNLOAD, PhaseState.PENDING, "Awaiting download")

    assert updated.phase is PhaseState.PENDING
    assert updated.label == "Awaiting download"


def test_session_starts_with_every_phase_pending() -> None:
    session = Session(access_token="calm-river")

    assert {record.phase for record in session.phases.values()} == {PhaseState.PENDING}
    assert set(session.phases) == set(PhaseName)
    assert session.downloads_count == 0
    assert session.holding is False


def test_session_endpoint_is_assigned_once() -> None:
    session = Session(access_token="calm-river")
    session.assign_endpoint(Endpoint(address="192.168.1.20", port=1337))

    with pytest.raises(PhaseTransitionError):
        session.assign_endpoint(Endpoint(address="192.168.1.20", port=1338))


def test_session_countdown_rounds_and_hides_after_shutdown() -> None:
    session = Session(access_token="calm-river", hold_until=100.0)

    assert session.seconds_until_close(now=40.4) == 60
    assert session.seconds_until_close(now=120.0) == 0

    session.shutdown_requested = True
    assert session.seconds_until_close(now=40.0) is None


def test_endpoint_url_embeds_token() -> None:
    endpoint = Endpoint(address="10.0.0.5", port=1337)

    assert endpoint.url_for("calm-river") == "http://10.0.0.5:1337/calm-river"


def test_access_token_is_adjective_noun() -> None:
    token = generate_access_token()

    assert re.fullmatch(r"[a-z]+-[a-z]+", token)


def test_subdomain_hint_is_lowercase_alphanumeric_and_truncated() -> None:
    assert subdomain_from_token("Calm-River") == "calmriver"
    assert subdomain_from_token("wandering-thunderstorm-x") == "wanderingthunderstor"
    assert len(subdomain_from_token("a" * 40, max_length=20)) == 20


def test_generated_password_has_requested_length() -> None:
    assert len(generate_password()) == 16
    assert generate_password() != generate_password()


def test_share_request_defaults_to_tunnel() -> None:
    request = ShareRequest(source=Path("notes.txt"))

    assert request.tunnel is True
    assert request.stdin is None
