from __future__ import annotations

import pytest

from surfacemap.detectors.api import (
    ApiEndpointDetector,
    ClientCallStrategy,
    GraphQLStrategy,
    OpenApiStrategy,
    PythonRouteStrategy,
    RouteFileStrategy,
    endpoint_for_route_file,
    method_from_filename,
)
from tests._fixtures.repo_builder import RepoBuilder


@pytest.mark.parametrize(
    ("path", "endpoint"),
    [
        ("app/api/users/route.ts", "/api/users"),
        ("src/app/api/users/[id]/route.ts", "/api/users/:id"),
        ("pages/api/orders/index.ts", "/api/orders"),
        ("pages/api/files/[...path].ts", "/api/files/:path*"),
        ("app/health/route.ts", "/health"),
        ("src/services/api/client.ts", None),
    ],
)
def test_endpoint_for_route_file(path: str, endpoint: str | None) -> None:
    assert endpoint_for_route_file(path) == endpoint


@pytest.mark.parametrize(
    ("path", "method"),
    [
        ("pages/api/createUser.ts", "POST"),
        ("pages/api/addItem.ts", "POST"),
        ("pages/api/updateProfile.ts", "PUT"),
        ("pages/api/deleteOrder.ts", "DELETE"),
        ("pages/api/users.ts", "GET"),
    ],
)
def test_method_from_filename(path: str, method: str) -> None:
    assert method_from_filename(path) == method


def test_route_handler_exports_define_methods_auth_and_payload() -> None:
    text = """
    import { getServerSession } from "next-auth";
    export async function GET(request: Request) {
      const session = await getServerSession();
      return Response.json([]);
    }
    export async function POST(request: Request) {
      const { name, email: address, role = "member" } = await request.json();
      return Response.json({ ok: true });
    }
    """

    endpoints = RouteFileStrategy().extract(text, "app/api/users/route.ts")

    assert [(ep.method, ep.endpoint) for ep in endpoints] == [("GET", "/api/users"), ("POST", "/api/users")]
    assert all(ep.framework == "nextjs" and ep.auth_required for ep in endpoints)
    assert endpoints[0].payload_fields is None
    assert endpoints[1].payload_fields == ("name", "email", "role")


def test_pages_handler_method_from_request_check_then_filename() -> None:
    checked = RouteFileStrategy().extract(
        'export default function handler(req, res) { if (req.method === "DELETE") {} }',
        "pages/api/items/[id].ts",
    )
    conventional = RouteFileStrategy().extract("export default function handler(req, res) {}", "pages/api/createItem.ts")

    assert [(ep.method, ep.endpoint, ep.auth_required) for ep in checked] == [("DELETE", "/api/items/:id", False)]
    assert [(ep.method, ep.endpoint) for ep in conventional] == [("POST", "/api/createItem")]


def test_client_calls_cover_fetch_axios_hooks_and_clients() -> None:
    text = """
    await fetch(`/api/patients/${id}`, { method: "PUT" });
    await fetch("https://example.com/external");
    await axios.delete('/api/patients/1');
    const query = useQuery(['/api/appointments']);
    api.patients.post('/patients');
    """

    endpoints = ClientCallStrategy().extract(text, "src/components/PatientForm.tsx")

    assert [(ep.method, ep.endpoint) for ep in endpoints] == [
        ("PUT", "/api/patients/:param"),
        ("DELETE", "/api/patients/1"),
        ("GET", "/api/appointments"),
        ("POST", "/patients"),
    ]
    assert all(ep.handler == "src/components/PatientForm.tsx" for ep in endpoints)


def test_graphql_operations_only_inside_tagged_templates() -> None:
    text = """
    // a query Name in a comment is not an operation
    const GET_USERS = gql`
      query ListUsers { users { id } }
    `;
    const ADD = graphql`mutation AddUser($name: String!) { addUser(name: $name) { id } }`;
    """

    endpoints = GraphQLStrategy().extract(text, "src/graphql/users.ts")

    assert [(ep.name, ep.endpoint, ep.method) for ep in endpoints] == [
        ("ListUsers", "/graphql/ListUsers", "GRAPHQL"),
        ("AddUser", "/graphql/AddUser", "GRAPHQL"),
    ]


def test_python_decorators_for_fastapi_and_flask() -> None:
    text = """
    @router.get("/items/{item_id}")
    def read_item(item_id: int, user=Depends(get_current_user)):
        ...

    @app.route("/orders/<int:order_id>", methods=["GET", "PATCH"])
    def order(order_id):
        ...
    """

    endpoints = PythonRouteStrategy().extract(text, "service/api.py")

    assert [(ep.method, ep.endpoint, ep.framework) for ep in endpoints] == [
        ("GET", "/items/:item_id", "fastapi"),
        ("GET", "/orders/:order_id", "flask"),
        ("PATCH", "/orders/:order_id", "flask"),
    ]
    assert all(ep.auth_required for ep in endpoints)


def test_openapi_yaml_document_is_parsed() -> None:
    text = """
openapi: 3.0.0
paths:
  /pets/{petId}:
    get:
      summary: Show a pet
      security:
        - bearer: []
    parameters: []
"""

    endpoints = OpenApiStrategy().extract(text, "docs/openapi.yaml")

    assert [(ep.name, ep.method, ep.endpoint, ep.auth_required) for ep in endpoints] == [
        ("Show a pet", "GET", "/pets/:petId", True)
    ]


def test_openapi_invalid_document_is_skipped() -> None:
    assert OpenApiStrategy().extract("{not json", "openapi.json") == []


def test_detector_combines_sources_and_dedupes_by_method_and_endpoint(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "app/api/users/route.ts": """
                export async function GET() { return Response.json([]) }
            """,
            "app/users/page.tsx": """
                export default function Users() {
                  fetch('/api/users');
                  fetch('/api/users', { method: 'POST' });
                  return null;
                }
            """,
            "server/routes/orders.js": "router.get('/orders', list);\n",
            "openapi.json": '{"paths": {"/status": {"get": {"operationId": "status"}}}}',
        }
    )

    endpoints = ApiEndpointDetector().detect(repo_builder.path(), repo_builder.scan())
    keys = [f"{ep.method}:{ep.endpoint}" for ep in endpoints]

    assert len(keys) == len(set(keys))
    assert keys == ["GET:/api/users", "POST:/api/users", "GET:/orders", "GET:/status"]
    assert endpoints[0].handler == "app/api/users/route.ts"
    assert endpoints[2].framework == "express"
    assert endpoints[3].name == "status"
