"""Fake Fortify backend and raw record builders for provider tests."""

from __future__ import annotations

import httpx

SSC_URL = "https://ssc.example.com"
FOD_URL = "https://api.ams.fortify.com"

CRITICAL_GUID = "b968f72f-cc12-03b5-976e-ad4c13920c21"
HIGH_GUID = "5b50bb77-071d-08ed-fdba-1213fa90ac5a"
MEDIUM_GUID = "d5f55910-5f0d-a775-e91f-191d1f5608a4"
LOW_GUID = "bb824e8d-b401-40be-13bd-5d156696a685"


class FakeBackend:
    """Routes requests by (method, path) to queued responses and records every call.

    A queued item may be a JSON-able value (200), an ``httpx.Response``, an
    exception instance to raise, or a callable taking the request. The last
    item of a queue repeats.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], list] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, *responses) -> None:
        self.routes[(method, path)] = list(responses)

    def calls(self, path: str, method: str = "GET") -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path and r.method == method]

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, json={"message": f"No route for {request.url.path}"})
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        if callable(item):
            return item(request)
        if isinstance(item, httpx.Response):
            return httpx.Response(item.status_code, headers=item.headers, content=item.content)
        return httpx.Response(200, json=item)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)


def ssc_issue(issue_id: int, folder_guid: str = HIGH_GUID, **overrides) -> dict:
    raw = {
        "id": issue_id,
        "issueInstanceId": f"INST{issue_id:04d}",
        "issueName": "SQL Injection",
        "category": "SQL Injection",
        "kingdom": "Input Validation and Representation",
        "likelihood": "0.8",
        "confidence": "5.0",
        "primaryLocation": f"src/Dao{issue_id}.java",
        "lineNumber": 10 + issue_id,
        "friority": "High",
        "folderGuid": folder_guid,
    }
    raw.update(overrides)
    return raw


def fod_vuln(vuln_id: int, severity: str = "High", **overrides) -> dict:
    raw = {
        "id": vuln_id,
        "vulnId": f"abb6c1ff-7b24-4b6d-a469-{vuln_id:012d}",
        "releaseId": 77,
        "kingdom": "Security Features",
        "category": "Cross-Site Scripting",
        "subCategory": "Reflected",
        "primaryLocationFull": f"web/Page{vuln_id}.cshtml",
        "fileName": f"Page{vuln_id}.cshtml",
        "shortFileName": f"Page{vuln_id}.cshtml",
        "lineNumber": 5,
        "confidence": 3.0,
        "likelihood": 0.5,
        "severityString": severity,
        "priorityOrder": 2,
    }
    raw.update(overrides)
    return raw
