from __future__ import annotations

from pathlib import Path

import pytest

from surfacemap.classifier import RepoClassifier
from surfacemap.detectors.navigation import (
    LayoutLinkStrategy,
    NavigationDetector,
    RouterConfigStrategy,
    array_objects,
    closing_bracket,
    is_router_file,
    route_for_screen,
)
from surfacemap.utils import stable_id
from tests._fixtures.repo_builder import RepoBuilder


def test_app_router_pages_become_home_and_dashboard(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "app/page.tsx": "export default function Page() { return null }\n",
            "app/dashboard/page.tsx": "export default function Page() { return null }\n",
        }
    )

    edges = NavigationDetector().detect(repo_builder.path(), repo_builder.scan())

    assert [(edge.path, edge.label) for edge in edges] == [("/", "Home"), ("/dashboard", "Dashboard")]
    assert edges[1].to_screen_id == stable_id("app/dashboard/page.tsx")


@pytest.mark.parametrize(
    ("path", "route"),
    [
        ("pages/index.tsx", "/"),
        ("pages/about.tsx", "/about"),
        ("src/pages/users/[id].tsx", "/users/:id"),
        ("pages/docs/[...slug].tsx", "/docs/:slug*"),
        ("app/(marketing)/pricing/page.tsx", "/pricing"),
        ("app/@modal/login/page.tsx", "/login"),
        ("app/dashboard/layout.tsx", None),
        ("pages/_app.tsx", None),
        ("pages/api/users.ts", None),
        ("src/components/Header.tsx", None),
    ],
)
def test_route_for_screen(path: str, route: str | None) -> None:
    assert route_for_screen(path) == route


def test_layout_links_parse_links_arrays_and_anchors() -> None:
    text = """
    const navItems = [
      { href: "/reports", label: "Reports" },
      { path: "/settings", title: "Settings" },
    ];
    export function Nav() {
      return (
        <nav>
          <Link to="/patients">Patients</Link>
          <a href="/help">Help</a>
          <a href="//cdn.example.com">CDN</a>
        </nav>
      );
    }
    """

    edges = LayoutLinkStrategy().extract(text, "src/components/Navigation.tsx")

    assert [(edge.path, edge.label) for edge in edges] == [
        ("/patients", "Patients"),
        ("/reports", "Reports"),
        ("/settings", "Settings"),
        ("/help", "Help"),
    ]


def test_nav_array_items_with_nested_arrays_are_kept() -> None:
    text = """
    const navItems: NavItem[] = [
      { href: "/admin", label: "Admin", roles: ["admin"] },
      { href: "/reports", label: "Reports", children: [{ href: "/reports/daily", label: "Daily" }] },
    ];
    """

    edges = LayoutLinkStrategy().extract(text, "src/components/Sidebar.tsx")

    assert [(edge.path, edge.label) for edge in edges] == [("/admin", "Admin"), ("/reports", "Reports")]


def test_nav_array_items_with_jsx_icons_are_kept() -> None:
    text = """
    const links = [
      { href: "/", label: "Home", icon: <HomeIcon className={styles.icon} /> },
      { href: "/team", label: "Team", icon: <Users size={16} /> },
    ];
    """

    edges = LayoutLinkStrategy().extract(text, "src/components/Navigation.tsx")

    assert [(edge.path, edge.label) for edge in edges] == [("/", "Home"), ("/team", "Team")]


def test_closing_bracket_skips_strings_and_nesting() -> None:
    text = '[{ a: "]" }, [1, [2]], `x}`]'

    assert closing_bracket(text, 0) == len(text) - 1
    assert closing_bracket("[ { unterminated", 0) == -1
    assert array_objects('{ a: { b: 1 } }, "{", { c: [2] }') == ["{ a: { b: 1 } }", "{ c: [2] }"]


def test_router_config_parses_jsx_and_object_routes() -> None:
    text = """
    <Routes>
      <Route path="/orders" element={<OrderList />} />
    </Routes>
    const routes = [{ path: "/orders/:id", component: OrderDetail }];
    """

    edges = RouterConfigStrategy().extract(text, "src/App.tsx")

    assert [(edge.path, edge.label) for edge in edges] == [
        ("/orders", "Order List"),
        ("/orders/:id", "Order Detail"),
    ]


def test_is_router_file() -> None:
    assert is_router_file("src/App.tsx")
    assert is_router_file("src/router/index.ts")
    assert is_router_file("src/routes.js")
    assert not is_router_file("src/routes.md")
    assert not is_router_file("src/components/Button.tsx")


def test_navigation_edges_are_unique_by_path_first_wins(repo_builder: RepoBuilder) -> None:
    repo_builder.write(
        {
            "app/settings/page.tsx": "export default function Page() { return null }\n",
            "app/layout.tsx": """
                export default function Layout() {
                  return <nav><Link to="/settings">Preferences</Link><Link to="/audit">Audit</Link></nav>;
                }
            """,
            "src/App.tsx": '<Route path="/audit" element={<AuditLog />} />\n',
        }
    )

    edges = NavigationDetector().detect(repo_builder.path(), repo_builder.scan())
    paths = [edge.path for edge in edges]

    assert len(paths) == len(set(paths))
    by_path = {edge.path: edge for edge in edges}
    assert by_path["/settings"].label == "Settings"
    assert by_path["/audit"].label == "Audit"


def test_navigation_without_routes_is_empty(tmp_path: Path) -> None:
    root = tmp_path / "repo"
    root.mkdir()
    (root / "README.md").write_text("# Nothing here\n", encoding="utf-8")
    index = RepoClassifier().classify(root)

    assert NavigationDetector().detect(root, index) == []
