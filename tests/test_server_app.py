from __future__ import annotations

import pytest

from tests.conftest import wait_until


def test_healthz_reports_alive(client) -> None:
    resp = client.get("/healthz")
    assert resp.status_code == 200
    assert resp.get_data(as_text=True).strip() == "ALIVE"


def test_healthz_reports_not_alive_after_toggle(client, health) -> None:
    resp = client.get("/toggle-alive")
    assert resp.status_code == 200
    assert "Liveness is now: False for Pod web-1" in resp.get_data(as_text=True)
    resp = client.get("/healthz")
    assert resp.status_code == 500
    assert resp.get_data(as_text=True).strip() == "NOT ALIVE"
    assert health.is_alive() is False


def test_ready_toggles_between_200_and_503(client) -> None:
    assert client.get("/ready").status_code == 200
    resp = client.get("/toggle-ready")
    assert "Readiness is now: False" in resp.get_data(as_text=True)
    resp = client.get("/ready")
    assert resp.status_code == 503
    assert resp.get_data(as_text=True).strip() == "NOT READY"
    client.get("/toggle-ready")
    assert client.get("/ready").status_code == 200


def test_root_greets_with_app_and_pod(client) -> None:
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.get_data(as_text=True).strip() == "Hello from demo on Pod web-1"


def test_identity_lives_in_closures_not_app_config(client) -> None:
    assert "APP_NAME" not in client.application.config
    assert "POD_NAME" not in client.application.config


def test_one_shot_hog_defaults_to_ten(client, simulator) -> None:
    resp = client.get("/hog")
    assert resp.status_code == 200
    assert "Total chunks: 10" in resp.get_data(as_text=True)
    assert simulator.current_block_count() == 10


def test_one_shot_hog_with_size(client, simulator) -> None:
    resp = client.get("/hog?mb=3")
    assert resp.status_code == 200
    body = resp.get_data(as_text=True)
    assert "Allocated 3 MiB in one shot on pod web-1" in body
    assert "Total chunks: 3" in body


@pytest.mark.parametrize("mb", ["abc", "0", "-4", "2.5", "1_0", "\u0663"])
def test_one_shot_hog_rejects_bad_size(client, simulator, mb: str) -> None:
    simulator.one_shot_allocate(1)
    resp = client.get("/hog", query_string={"mb": mb})
    assert resp.status_code == 400
    assert "Invalid mb parameter" in resp.get_data(as_text=True)
    assert simulator.current_block_count() == 1


def test_start_hog_rejects_bad_size(client, simulator) -> None:
    resp = client.get("/start-hog?mb=abc")
    assert resp.status_code == 400
    assert simulator.running is False


def test_start_hog_twice_reports_already_hogging(client, simulator) -> None:
    resp = client.get("/start-hog?mb=5")
    assert resp.status_code == 200
    assert "Started allocating 5 MiB per second on pod web-1" in resp.get_data(as_text=True)

    resp = client.get("/start-hog?mb=7")
    assert resp.status_code == 200
    assert "Already hogging" in resp.get_data(as_text=True)

    assert wait_until(lambda: simulator.current_block_count() >= 10)
    client.get("/stop-hog")
    simulator.join(1.0)
    assert simulator.current_block_count() % 5 == 0


def test_start_hog_defaults_to_five(client, simulator) -> None:
    resp = client.get("/start-hog")
    assert "Started allocating 5 MiB" in resp.get_data(as_text=True)
    assert wait_until(lambda: simulator.current_block_count() >= 5)


def test_stop_hog_reports_state(client, simulator) -> None:
    resp = client.get("/stop-hog")
    assert resp.status_code == 200
    assert "Not currently hogging on pod web-1" in resp.get_data(as_text=True)

    client.get("/start-hog?mb=1")
    resp = client.get("/stop-hog")
    assert resp.status_code == 200
    assert "Stopped hogging memory on pod web-1" in resp.get_data(as_text=True)
    simulator.join(1.0)
    assert simulator.running is False


def test_reset_hog_clears_blocks(client, simulator) -> None:
    client.get("/hog?mb=4")
    resp = client.get("/reset-hog")
    assert resp.status_code == 200
    assert "(Chunks cleared.)" in resp.get_data(as_text=True)
    assert simulator.current_block_count() == 0
