# tests/fake_viya.py
"""In-memory stand-in for SAS Logon and the compute/launcher context services."""
import json
import re
from urllib.parse import parse_qs

import httpx

SERVER_URL = "https://viya.example.com"

LOGIN_PAGE = """<html><body>
<form id="fm1" method="post" action="/SASLogon/login.do?lang=en">
<input type="hidden" name="execution" value="e1s1"/>
<input type="hidden" name="_eventId" value="submit"/>
<input type="hidden" name="username" value="scraped"/>
<input id="username" name="username" type="text"/>
<input id="password" name="password" type="password"/>
</form>
</body></html>"""

LOGGED_IN_PAGE = """<html><body>
<p>You are signed in.</p>
<button type="button" onClick="location.href='/SASLogon/logout.do'">Sign out</button>
</body></html>"""

SIGNED_IN_PAGE = "<html><body><h3>You have signed in.</h3></body></html>"

AUTHORIZE_PAGE = """<html><body>
<form id="application_authorization" method="post" action="/SASLogon/oauth/authorize">
<input name="user_oauth_approval" value="false" type="hidden"/>
<input name="X-Uaa-Csrf" value="csrf-token" type="hidden"/>
<input name="scope.0" value="scope.openid" type="hidden"/>
<button type="submit">Authorize</button>
</form>
</body></html>"""

_FILTER = re.compile(r'eq\(name,"(.*)"\)')


class FakeViyaServer:
    """
    Just enough of SAS Logon and the compute/launcher context services.

    Every request is recorded in `requests` so tests can assert on exactly
    what went over the wire (or that nothing did).
    """

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.users = {"alice": "secret"}
        self.logged_in = False
        self.require_authorization = False
        self.report_sign_in = True
        self.fail: dict[tuple[str, str], int] = {}
        self.send_etags = True
        self.compute_list_payload = None
        self.launcher_list_payload = None

        self.compute: dict[str, dict] = {}
        self.etags: dict[str, str] = {}
        self.launcher: dict[str, dict] = {}
        self._ids = 0
        self._etag_seq = 0

    # ---- seeding -----------------------------------------------------------

    def _next_id(self, prefix: str) -> str:
        self._ids += 1
        return f"{prefix}-{self._ids}"

    def _touch(self, context_id: str) -> str:
        self._etag_seq += 1
        self.etags[context_id] = f'W/"etag-{self._etag_seq}"'
        return self.etags[context_id]

    def add_compute_context(self, name: str, **fields) -> dict:
        context_id = fields.pop("id", None) or self._next_id("compute")
        context = {
            "id": context_id,
            "name": name,
            "createdBy": "sas",
            "version": 4,
            "attributes": {"reuseServerProcesses": True},
            "launchContext": {"contextName": "SAS Studio launcher context"},
            **fields,
        }
        self.compute[context_id] = context
        self._touch(context_id)
        return context

    def add_launcher_context(self, name: str, **fields) -> dict:
        context_id = self._next_id("launcher")
        context = {"id": context_id, "name": name, "launchType": "direct", "createdBy": "sas", **fields}
        self.launcher[context_id] = context
        return context

    # ---- inspection --------------------------------------------------------

    def calls(self, method: str | None = None, path: str | None = None) -> list[httpx.Request]:
        return [
            r
            for r in self.requests
            if (method is None or r.method == method) and (path is None or r.url.path == path)
        ]

    def rest_calls(self) -> list[httpx.Request]:
        return [r for r in self.requests if not r.url.path.startswith("/SASLogon")]

    # ---- transport ---------------------------------------------------------

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        method, path = request.method, request.url.path

        if (method, path) in self.fail:
            return httpx.Response(self.fail[(method, path)], json={"message": "boom"})

        if path.startswith("/SASLogon"):
            return self._logon(request, method, path)
        if path.startswith("/compute/contexts"):
            return self._compute(request, method, path)
        if path.startswith("/launcher/contexts"):
            return self._launcher(request, method)
        return httpx.Response(404, json={"message": f"no route for {path}"})

    def _logon(self, request, method, path):
        if method == "GET" and path == "/SASLogon/login":
            return httpx.Response(200, html=LOGGED_IN_PAGE if self.logged_in else LOGIN_PAGE)

        if method == "POST" and path == "/SASLogon/login.do":
            form = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
            ok = (
                form.get("execution") == "e1s1"
                and form.get("_service") == "default"
                and self.users.get(form.get("username")) == form.get("password")
            )
            if not ok:
                return httpx.Response(401, html=LOGIN_PAGE)
            if self.require_authorization:
                return httpx.Response(200, html=AUTHORIZE_PAGE)
            self.logged_in = True
            return httpx.Response(200, html=SIGNED_IN_PAGE if self.report_sign_in else "<html></html>")

        if method == "POST" and path == "/SASLogon/oauth/authorize":
            form = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
            if form.get("user_oauth_approval") == "true" and form.get("X-Uaa-Csrf") == "csrf-token":
                self.logged_in = True
                return httpx.Response(200, html=SIGNED_IN_PAGE)
            return httpx.Response(403, html=AUTHORIZE_PAGE)

        if method == "GET" and path in ("/SASLogon/logout.do", "/SASLogon/logout"):
            self.logged_in = False
            return httpx.Response(200, html="<html>You have signed out.</html>")

        return httpx.Response(404, html="not found")

    def _compute(self, request, method, path):
        parts = path.strip("/").split("/")
        if len(parts) == 2:
            if method == "GET":
                name_filter = request.url.params.get("filter")
                if name_filter is not None:
                    match = _FILTER.fullmatch(name_filter)
                    name = match.group(1) if match else None
                    items = [c for c in self.compute.values() if c["name"] == name]
                    return httpx.Response(200, json={"items": items, "count": len(items)})
                if self.compute_list_payload is not None:
                    return httpx.Response(200, json=self.compute_list_payload)
                items = [
                    {"id": c["id"], "name": c["name"], "createdBy": c.get("createdBy"), "version": c.get("version")}
                    for c in self.compute.values()
                ]
                return httpx.Response(200, json={"items": items, "count": len(items)})
            if method == "POST":
                body = json.loads(request.content)
                if any(c["name"] == body["name"] for c in self.compute.values()):
                    return httpx.Response(409, json={"message": "A context with that name already exists."})
                context = self.add_compute_context(body.pop("name"), createdBy="alice", **body)
                return self._with_etag(201, context)

        if len(parts) == 3:
            context_id = parts[2]
            if context_id not in self.compute:
                return httpx.Response(404, json={"message": "Not found"})
            if method == "GET":
                return self._with_etag(200, self.compute[context_id])
            if method == "PUT":
                if request.headers.get("if-match") != self.etags[context_id]:
                    return httpx.Response(412, json={"message": "Precondition failed"})
                body = json.loads(request.content)
                body["id"] = context_id
                self.compute[context_id] = body
                self._touch(context_id)
                return self._with_etag(200, body)
            if method == "DELETE":
                del self.compute[context_id]
                del self.etags[context_id]
                return httpx.Response(204)

        return httpx.Response(405, json={"message": "Method not allowed"})

    def _launcher(self, request, method):
        if method == "GET":
            if self.launcher_list_payload is not None:
                return httpx.Response(200, json=self.launcher_list_payload)
            items = list(self.launcher.values())
            return httpx.Response(200, json={"items": items, "count": len(items)})
        if method == "POST":
            body = json.loads(request.content)
            if any(c["name"] == body["name"] for c in self.launcher.values()):
                return httpx.Response(409, json={"message": "A context with that name already exists."})
            return httpx.Response(201, json=self.add_launcher_context(body.pop("name"), **body))
        return httpx.Response(405, json={"message": "Method not allowed"})

    def _with_etag(self, status: int, body: dict) -> httpx.Response:
        headers = {"ETag": self.etags[body["id"]]} if self.send_etags else {}
        return httpx.Response(status, json=body, headers=headers)

