import os
import sys
import time

import pytest
import requests
import subprocess

PORT = 8011
BASE = f"http://127.0.0.1:{PORT}"


def test_server_startup(tmp_path):
    """Test that the server starts and answers before any configuration exists"""
    env = {**os.environ, "STEERING_CONFIG_FILE": str(tmp_path / "absent.json")}
    env.pop("STEERING_CONFIG_JSON", None)

    process = subprocess.Popen([
        sys.executable, "-m", "uvicorn",
        "steering.main:app",
        "--host", "127.0.0.1",
        "--port", str(PORT),
        "--log-level", "warning"
    ], stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL, env=env,
        cwd=os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

    try:
        # Wait for server to start (max 10 seconds)
        start_time = time.time()
        server_started = False

        while time.time() - start_time < 10:
            try:
                response = requests.get(f"{BASE}/", timeout=1)
                if response.status_code == 200:
                    server_started = True
                    break
            except requests.exceptions.RequestException:
                # Server not ready yet, wait a bit more
                time.sleep(0.5)

        if not server_started:
            pytest.skip("Server did not start within 10 seconds")

        response = requests.get(f"{BASE}/dash.dcsm", timeout=5)
        assert response.status_code == 404

        response = requests.post(f"{BASE}/content_steering_config", timeout=5, json={
            "TTL": 5,
            "RELOAD_URI": f"{BASE}/dash.dcsm",
            "serviceLocations": [{"serviceLocationId": "a", "serviceLocationUri": "https://a/"}],
        })
        assert response.status_code == 202

        response = requests.get(f"{BASE}/dash.dcsm", timeout=5)
        assert response.status_code == 200
        assert response.json()["SERVICE-LOCATION-PRIORITY"] == ["a"]
    finally:
        process.terminate()
        try:
            process.wait(timeout=5)
        except subprocess.TimeoutExpired:
            process.kill()
