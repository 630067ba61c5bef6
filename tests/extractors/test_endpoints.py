"""Tests for the route declaration sweep."""

from __future__ import annotations

from pathlib import Path

from repoatlas.extractors.endpoints import extract_endpoints, scan_text


def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def _routes(text: str) -> list[tuple[str, str]]:
    return [(endpoint.method, endpoint.path) for endpoint in scan_text(text)]


def test_express_style_registrations() -> None:
    text = """
const app = express();
app.get('/users', listUsers);
router.post("/users", createUser);
app.delete(`/users/:id`, removeUser);
"""

    assert _routes(text) == [
        ("GET", "/users"),
        ("POST", "/users"),
        ("DELETE", "/users/:id"),
    ]


def test_gin_style_uppercase_methods() -> None:
    assert _routes('r.PUT("/orders/:id", h)\nr.GET("/health", h)') == [
        ("PUT", "/orders/:id"),
        ("GET", "/health"),
    ]


def test_method_inferred_from_full_registration_text() -> None:
    text = 'router.delete("/posts/:id", h)\napp.get("/output", h)'

    assert _routes(text) == [("POST", "/posts/:id"), ("PUT", "/output")]


def test_spring_mapping_annotations() -> None:
    text = """
@GetMapping("/invoices")
public List<Invoice> list() {}

@PostMapping(value = "/invoices")
public Invoice create() {}

@RequestMapping(path = "/legacy", method = RequestMethod.PUT)
public void legacy() {}

@RequestMapping("/plain")
public void plain() {}
"""

    assert _routes(text) == [
        ("GET", "/invoices"),
        ("POST", "/invoices"),
        ("PUT", "/legacy"),
        ("GET", "/plain"),
    ]


def test_handle_func_defaults_to_get() -> None:
    assert _routes('http.HandleFunc("/metrics", metrics)\nmux.Handle("/", fs)') == [
        ("GET", "/metrics"),
        ("GET", "/"),
    ]


def test_flask_route_reads_methods_argument() -> None:
    text = """
@app.route("/login", methods=["POST"])
def login(): ...

@bp.route('/status')
def status(): ...
"""

    assert _routes(text) == [("POST", "/login"), ("GET", "/status")]


def test_relative_strings_are_not_routes() -> None:
    assert _routes('cache.get("users")\nmap.put("key", value)') == []


def test_extract_endpoints_keeps_every_match_and_skips_non_source(tmp_path: Path) -> None:
    _write(tmp_path / "api" / "routes.js", "app.get('/a', h)\napp.post('/a', h)\n")
    _write(tmp_path / "api" / "more.js", "router.get('/a', other)\n")
    _write(tmp_path / "api" / "README.md", "app.get('/docs', h)\n")

    endpoints = extract_endpoints(
        tmp_path,
        ["api/README.md", "api/routes.js", "api/more.js", "api/missing.js"],
    )

    assert [(e.method, e.path) for e in endpoints] == [
        ("GET", "/a"),
        ("POST", "/a"),
        ("GET", "/a"),
    ]
    assert endpoints[0].description == "GET endpoint"
