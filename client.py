import requests
from typing import Optional


class PumpingIronClient:
    """Simple REST client for the persistence API."""

    def __init__(self, base_url: str = "http://localhost:8000", timeout: float = 10.0) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _request(self, method: str, path: str, **kwargs):
        resp = requests.request(
            method, f"{self.base_url}{path}", timeout=self.timeout, **kwargs
        )
        resp.raise_for_status()
        return resp

    def list_exercises(self) -> list[dict]:
        return self._request("GET", "/exercises").json()

    def create_exercise(self, name: str) -> list[dict]:
        return self._request("POST", "/exercises", json={"name": name}).json()

    def rename_exercise(self, exercise_id: str, name: str) -> list[dict]:
        return self._request("PUT", f"/exercises/{exercise_id}", json={"name": name}).json()

    def delete_exercise(self, exercise_id: str) -> list[dict]:
        return self._request("DELETE", f"/exercises/{exercise_id}").json()

    def list_workouts(self, limit: Optional[int] = None) -> list[dict]:
        params = {"limit": limit} if limit is not None else None
        return self._request("GET", "/workouts", params=params).json()

    def create_workout(self, workout: dict) -> list[dict]:
        return self._request("POST", "/workouts", json=workout).json()

    def delete_workout(self, workout_id: str) -> list[dict]:
        return self._request("DELETE", f"/workouts/{workout_id}").json()

    def progress(self, exercise_id: str) -> dict:
        return self._request("GET", f"/exercises/{exercise_id}/progress").json()

    def export_csv(self) -> str:
        return self._request("GET", "/export.csv").text
