"""Axiom 로깅 미들웨어 테스트.

Axiom logging middleware tests — masking, event building, and the middleware
wired to a recording client on a throwaway app.
"""

from typing import Any

from fastapi import FastAPI, HTTPException
from httpx import ASGITransport, AsyncClient
from starlette.requests import Request

from memberdb.middleware.axiom_logging import AxiomLoggingMiddleware, build_log_event, mask_sensitive


class RecordingClient:
    """수집된 이벤트를 기록하는 가짜 Axiom 클라이언트."""

    def __init__(self, fail: bool = False) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []
        self.fail: bool = fail

    def ingest_events(self, dataset: str, events: list[dict[str, Any]]) -> None:
        if self.fail:
            raise RuntimeError("axiom unavailable")
        self.events.extend((dataset, event) for event in events)


def _request(path: str = "/members", query: bytes = b"", headers: list[tuple[bytes, bytes]] | None = None) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": path,
        "query_string": query,
        "headers": headers or [],
    }
    return Request(scope)


def _build_app(client: RecordingClient) -> FastAPI:
    app = FastAPI()
    app.add_middleware(AxiomLoggingMiddleware, client=client)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/members/{member_id}")
    async def get_member(member_id: int) -> str:
        if member_id == 0:
            raise HTTPException(status_code=404, detail="Member not found")
        return "member1"

    @app.post("/members")
    async def create_member(body: dict[str, Any]) -> dict[str, Any]:
        return body

    return app


class TestMasking:
    """민감 정보 마스킹 테스트."""

    def test_mask_nested(self):
        """중첩 구조의 민감 키 마스킹."""
        data = {"username": "m1", "password": "pw", "nested": {"api_key": "k", "ok": [{"token": "t"}]}}
        assert mask_sensitive(data) == {
            "username": "m1",
            "password": "***",
            "nested": {"api_key": "***", "ok": [{"token": "***"}]},
        }

    def test_mask_limits(self):
        """깊이와 목록 길이 제한."""
        assert len(mask_sensitive(list(range(50)))) == 20
        deep: Any = "leaf"
        for _ in range(10):
            deep = {"a": deep}
        masked = mask_sensitive(deep)
        for _ in range(6):
            masked = masked["a"]
        assert masked == "..."


class TestBuildLogEvent:
    """로그 이벤트 구성 테스트."""

    def test_event_fields(self):
        """메소드, 경로, 쿼리, 작업자."""
        request = _request(query=b"page=1&token=abc", headers=[(b"x-auditor", b"admin")])
        event = build_log_event(request, 200, 1.5)
        assert event["method"] == "GET"
        assert event["path"] == "/members"
        assert event["status_code"] == 200
        assert event["auditor"] == "admin"
        assert event["query_params"] == {"page": "1", "token": "***"}
        assert "error" not in event

    def test_event_error(self):
        """오류 사유 포함."""
        event = build_log_event(_request(), 404, 0.1, error="Member not found")
        assert event["error"] == "Member not found"
        assert "auditor" not in event


class TestMiddleware:
    """미들웨어 동작 테스트."""

    async def _call(self, recorder: RecordingClient, method: str, url: str, **kwargs: Any):
        transport = ASGITransport(app=_build_app(recorder))
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            return await ac.request(method, url, **kwargs)

    async def test_logs_success(self):
        """성공 요청 로깅."""
        recorder = RecordingClient()
        res = await self._call(recorder, "GET", "/members/1")
        assert res.json() == "member1"
        assert len(recorder.events) == 1
        _, event = recorder.events[0]
        assert event["status_code"] == 200

    async def test_logs_error_detail(self):
        """오류 응답은 사유를 기록하고 본문은 그대로 전달."""
        recorder = RecordingClient()
        res = await self._call(recorder, "GET", "/members/0")
        assert res.status_code == 404
        assert res.json() == {"detail": "Member not found"}
        assert recorder.events[0][1]["error"] == "Member not found"

    async def test_masks_request_body(self):
        """요청 본문 마스킹."""
        recorder = RecordingClient()
        res = await self._call(recorder, "POST", "/members", json={"username": "m1", "password": "pw"})
        assert res.json() == {"username": "m1", "password": "pw"}
        assert recorder.events[0][1]["request_body"] == {"username": "m1", "password": "***"}

    async def test_skips_health(self):
        """헬스 체크는 로깅 제외."""
        recorder = RecordingClient()
        await self._call(recorder, "GET", "/health")
        assert recorder.events == []

    async def test_ingest_failure_does_not_break_request(self):
        """로깅 실패는 응답에 영향 없음."""
        res = await self._call(RecordingClient(fail=True), "GET", "/members/1")
        assert res.status_code == 200
