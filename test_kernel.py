import io
import json
import logging
import os
import sys
import tempfile
import unittest
from unittest.mock import patch

# Add project root
sys.path.insert(0, os.path.abspath(os.path.dirname(__file__)))

logging.basicConfig(level=logging.CRITICAL)  # Silence internal logs during tests

from starlette.responses import JSONResponse

from jsl.config import Config
from jsl.controllers import BaseController
from jsl.exceptions import (
    ConfigError,
    DuplicateModuleError,
    InvalidModuleError,
    KernelNotInitializedError,
    UnresolvableDependencyError,
)
from jsl.http import Request, Router, Session, SessionInterface, ViewsInterface
from jsl.kernel import Kernel
from jsl.modules import AbstractModule, KernelModule, ModuleRegistry


def environ(path="/", method="GET", **extra):
    env = {"REQUEST_METHOD": method, "PATH_INFO": path, "SERVER_NAME": "localhost", "SERVER_PORT": "80"}
    env.update(extra)
    return env


class RecordingModule(AbstractModule):

    def __init__(self, module_id, log, defaults=None, provides=None, requires=None):
        self._id = module_id
        self.log = log
        self.defaults = defaults or {}
        self.provides = provides
        self.requires = requires

    def name(self):
        return f"Recording {self._id}"

    def id(self):
        return self._id

    def boot(self, kernel):
        self.log.append(("boot", self._id))
        if self.requires:
            kernel.resolve(self.requires)
        if self.provides:
            kernel.bind(self.provides, lambda: f"{self._id}-service")

    def routes(self, router):
        self.log.append(("routes", self._id))

    def config(self):
        self.log.append(("config", self._id))
        return self.defaults

    def deferred(self, kernel):
        self.log.append(("deferred", self._id))


class GreetingModule(AbstractModule):

    def name(self):
        return "Greeting"

    def id(self):
        return "greeting"

    def routes(self, router):
        router.get("/hello/{name}", self.hello, name="hello")
        router.get("/json", lambda: JSONResponse({"ok": True}), name="json")
        router.get("/nothing", lambda: None, name="nothing")

    def config(self):
        return {"salutation": "Hello", "punctuation": "!"}

    def hello(self, name):
        return f"Hello {name}"


class LateRouteModule(AbstractModule):
    """Registers its route only in the deferred phase."""

    def name(self):
        return "Late"

    def id(self):
        return "late"

    def deferred(self, kernel):
        total = len(kernel.modules)
        kernel.router.get("/late", lambda: f"modules={total}", name="late")


def path_of(request: Request):
    return request.path


class KernelTestCase(unittest.TestCase):

    def setUp(self):
        Kernel._instance = None
        self._tmp = tempfile.TemporaryDirectory()
        patcher = patch.dict(os.environ, {})
        patcher.start()
        self.addCleanup(patcher.stop)

    def tearDown(self):
        self._tmp.cleanup()
        Kernel._instance = None

    def write_config(self, data, name="app.json"):
        path = os.path.join(self._tmp.name, name)
        with open(path, "w", encoding="utf-8") as fh:
            json.dump(data, fh)
        return path

    def make_kernel(self, configs=(), **env):
        return Kernel(configs, environ=environ(**env))


class TestConstruction(KernelTestCase):

    def test_collaborators_are_bound(self):
        kernel = self.make_kernel()
        self.assertIs(kernel.resolve(Kernel), kernel)
        self.assertIs(kernel.resolve(Config), kernel.config)
        self.assertIs(kernel.resolve("config"), kernel.config)
        self.assertIs(kernel.resolve(Request), kernel.request)
        self.assertIs(kernel.resolve(Router), kernel.router)
        self.assertIs(kernel.resolve(ModuleRegistry), kernel.modules)

    def test_kernel_module_is_registered_first(self):
        kernel = self.make_kernel()
        self.assertTrue(kernel.has_module("kernel"))
        self.assertIsInstance(kernel.get_module("kernel"), KernelModule)
        self.assertEqual(kernel.modules.ids()[0], "kernel")
        self.assertEqual(kernel.config.get("kernel.timezone"), "UTC")
        self.assertIs(kernel.config.get("kernel.debug"), False)

    def test_request_built_from_environment(self):
        kernel = self.make_kernel(path="/posts", method="POST")
        self.assertEqual(kernel.request.method, "POST")
        self.assertEqual(kernel.request.path, "/posts")

    def test_configured_modules_are_added_in_order(self):
        path = self.write_config({"modules": [f"{__name__}:GreetingModule", f"{__name__}:LateRouteModule"]})
        kernel = self.make_kernel([path])
        self.assertEqual(kernel.modules.ids(), ["kernel", "greeting", "late"])

    def test_modules_must_be_a_list(self):
        path = self.write_config({"modules": "greeting"})
        with self.assertRaises(ConfigError):
            self.make_kernel([path])

    def test_configured_module_must_implement_contract(self):
        path = self.write_config({"modules": ["json:JSONDecoder"]})
        with self.assertRaises(InvalidModuleError):
            self.make_kernel([path])

    def test_unknown_configured_module(self):
        path = self.write_config({"modules": ["missing.package:Module"]})
        with self.assertRaises(UnresolvableDependencyError):
            self.make_kernel([path])


class TestGlobalAccess(KernelTestCase):

    def test_instance_before_construction(self):
        with self.assertRaises(KernelNotInitializedError):
            Kernel.instance()

    def test_first_kernel_wins(self):
        first = self.make_kernel()
        self.assertIs(Kernel.instance(), first)
        second = self.make_kernel()
        self.assertIsNot(second, first)
        self.assertIs(Kernel.instance(), first)
        self.assertIs(Kernel.instance(), first)


class TestSetup(KernelTestCase):

    def test_defaults(self):
        kernel = self.make_kernel()
        self.assertFalse(kernel.debug)
        self.assertEqual(kernel.settings.timezone, "UTC")
        self.assertEqual(os.environ["TZ"], "UTC")

    def test_debug_enables_debug_logging(self):
        path = self.write_config({"kernel": {"debug": True}})
        kernel = self.make_kernel([path])
        self.assertTrue(kernel.debug)
        self.assertEqual(logging.getLogger("jsl").level, logging.DEBUG)
        logging.getLogger("jsl").setLevel(logging.NOTSET)

    def test_unknown_timezone_falls_back_to_utc(self):
        path = self.write_config({"kernel": {"timezone": "Mars/Olympus_Mons"}})
        kernel = self.make_kernel([path])
        self.assertEqual(kernel.settings.timezone, "UTC")
        # the user value is kept in config, setup only degrades the applied value
        self.assertEqual(kernel.config.get("kernel.timezone"), "Mars/Olympus_Mons")

    def test_invalid_section_falls_back_to_defaults(self):
        path = self.write_config({"kernel": {"debug": "sometimes"}})
        kernel = self.make_kernel([path])
        self.assertFalse(kernel.debug)
        self.assertEqual(kernel.settings.timezone, "UTC")


class TestModuleLifecycle(KernelTestCase):

    def test_add_module_merges_defaults_without_overriding(self):
        path = self.write_config({"blog": {"per_page": 5}})
        kernel = self.make_kernel([path])
        log = []
        result = kernel.add_module(RecordingModule("blog", log, defaults={"per_page": 10, "title": "Blog"}))
        self.assertIs(result, kernel)
        self.assertEqual(kernel.config.get("blog.per_page"), 5)
        self.assertEqual(kernel.config.get("blog.title"), "Blog")
        self.assertEqual(log, [("boot", "blog"), ("config", "blog"), ("routes", "blog")])

    def test_module_without_id_only_boots_and_defers(self):
        kernel = self.make_kernel()
        log = []
        kernel.add_module(RecordingModule(None, log, defaults={"ignored": True}))
        kernel.process(io.BytesIO())
        self.assertEqual(log, [("boot", None), ("deferred", None)])
        self.assertIsNone(kernel.config.get("ignored"))

    def test_boot_order_with_dependencies(self):
        kernel = self.make_kernel()
        log = []
        kernel.add_modules([
            RecordingModule("alpha", log, provides="alpha.service"),
            RecordingModule("beta", log, requires="alpha.service", provides="beta.service"),
            RecordingModule("gamma", log, requires="beta.service"),
        ])
        kernel.process(io.BytesIO())
        boots = [entry for entry in log if entry[0] == "boot"]
        deferred = [entry for entry in log if entry[0] == "deferred"]
        self.assertEqual(boots, [("boot", "alpha"), ("boot", "beta"), ("boot", "gamma")])
        self.assertEqual(deferred, [("deferred", "alpha"), ("deferred", "beta"), ("deferred", "gamma")])
        self.assertEqual(kernel.resolve("beta.service"), "beta-service")

    def test_boot_dependency_on_later_module_fails(self):
        kernel = self.make_kernel()
        log = []
        with self.assertRaises(UnresolvableDependencyError):
            kernel.add_module(RecordingModule("needy", log, requires="later.service"))

    def test_duplicate_kernel_id_keeps_first_bindings(self):
        kernel = self.make_kernel()
        log = []
        with self.assertRaises(DuplicateModuleError):
            kernel.add_module(RecordingModule("kernel", log, defaults={"debug": True}))
        self.assertEqual(log, [])
        self.assertIsInstance(kernel.get_module("kernel"), KernelModule)
        self.assertIsInstance(kernel.session(), Session)
        self.assertIs(kernel.config.get("kernel.debug"), False)

    def test_partial_failure_keeps_earlier_modules(self):
        kernel = self.make_kernel()
        log = []
        with self.assertRaises(InvalidModuleError):
            kernel.add_modules([
                RecordingModule("first", log),
                object(),
                RecordingModule("third", log),
            ])
        self.assertTrue(kernel.has_module("first"))
        self.assertFalse(kernel.has_module("third"))


class TestResolve(KernelTestCase):

    def test_callable_with_parameters(self):
        kernel = self.make_kernel()
        self.assertEqual(kernel.resolve(lambda name: f"hi {name}", {"name": "bob"}), "hi bob")

    def test_callable_autowired_from_kernel(self):
        kernel = self.make_kernel(path="/posts")
        self.assertEqual(kernel.resolve(path_of), "/posts")
        self.assertEqual(kernel.resolve(path_of, {"request": Request.create("/other")}), "/other")

    def test_bound_name_and_chaining(self):
        kernel = self.make_kernel()
        self.assertIs(kernel.bind("answer", lambda: 42, singleton=False), kernel)
        self.assertEqual(kernel.resolve("answer"), 42)


class TestSession(KernelTestCase):

    def test_session_is_lazy_started_singleton(self):
        kernel = self.make_kernel()
        session = kernel.session()
        self.assertIsInstance(session, SessionInterface)
        self.assertTrue(session.is_started())
        self.assertIs(kernel.session(), session)
        self.assertIs(kernel.resolve(Session), session)

    def test_session_id_from_cookie(self):
        kernel = self.make_kernel(HTTP_COOKIE="JSLSESSID=abc123; theme=dark")
        self.assertEqual(kernel.session().id(), "abc123")


class TestProcess(KernelTestCase):

    def kernel_for(self, path, method="GET"):
        config = self.write_config({"modules": [f"{__name__}:GreetingModule", f"{__name__}:LateRouteModule"]})
        return self.make_kernel([config], path=path, method=method)

    def test_string_result_is_sent_as_body(self):
        out = io.BytesIO()
        response = self.kernel_for("/hello/ada").process(out)
        raw = out.getvalue()
        self.assertEqual(response.status_code, 200)
        self.assertTrue(raw.startswith(b"Status: 200 OK\r\n"))
        self.assertIn(b"content-type: text/html; charset=utf-8\r\n", raw)
        self.assertTrue(raw.endswith(b"\r\n\r\nHello ada"))

    def test_response_object_is_sent(self):
        out = io.BytesIO()
        self.kernel_for("/json").process(out)
        raw = out.getvalue()
        self.assertIn(b"content-type: application/json\r\n", raw)
        self.assertTrue(raw.endswith(b'{"ok":true}'))

    def test_none_result_sends_empty_body(self):
        out = io.BytesIO()
        self.kernel_for("/nothing").process(out)
        self.assertTrue(out.getvalue().endswith(b"\r\n\r\n"))

    def test_deferred_runs_before_dispatch(self):
        out = io.BytesIO()
        kernel = self.kernel_for("/late")
        self.assertFalse(kernel.modules.deferred_ran)
        kernel.process(out)
        self.assertTrue(out.getvalue().endswith(b"modules=3"))

    def test_undecodable_path_is_dispatched(self):
        out = io.BytesIO()
        self.kernel_for("/hello/Jos\udce9").process(out)
        self.assertTrue(out.getvalue().endswith("Hello Jos\ufffd".encode("utf-8")))

    def test_unknown_path_is_404(self):
        out = io.BytesIO()
        response = self.kernel_for("/missing").process(out)
        self.assertEqual(response.status_code, 404)
        self.assertTrue(out.getvalue().startswith(b"Status: 404 Not Found\r\n"))

    def test_wrong_method_is_405(self):
        response = self.kernel_for("/json", method="POST").process(io.BytesIO())
        self.assertEqual(response.status_code, 405)
        self.assertEqual(response.headers["allow"], "GET, HEAD")

    def test_module_defaults_visible_in_config(self):
        kernel = self.kernel_for("/")
        self.assertEqual(kernel.config.get("greeting.salutation"), "Hello")
        self.assertEqual(kernel.router.url_for("hello", name="bob"), "/hello/bob")


class FakeViews(ViewsInterface):

    def render(self, template, data=None):
        pairs = ",".join(f"{k}={v}" for k, v in sorted((data or {}).items()))
        return f"<{template}|{pairs}>"


class PageController(BaseController):

    def show(self, slug):
        return self.render("page.html", {"slug": slug, "self": self.route("page", slug=slug)})

    def legacy(self):
        return self.redirect(self.route("page", slug="home"), status_code=301)


class PagesModule(AbstractModule):

    def name(self):
        return "Pages"

    def id(self):
        return "pages"

    def boot(self, kernel):
        kernel.bind(ViewsInterface, FakeViews)

    def routes(self, router):
        router.get("/pages/{slug}", (PageController, "show"), name="page")
        router.get("/old-home", f"{__name__}:PageController@legacy", name="legacy")


class TestControllers(KernelTestCase):

    def kernel_for(self, path):
        config = self.write_config({"modules": [f"{__name__}:PagesModule"]})
        return self.make_kernel([config], path=path)

    def test_controller_is_built_with_kernel_and_renders(self):
        out = io.BytesIO()
        self.kernel_for("/pages/about").process(out)
        self.assertTrue(out.getvalue().endswith(b"<page.html|self=/pages/about,slug=about>"))

    def test_controller_redirect(self):
        out = io.BytesIO()
        response = self.kernel_for("/old-home").process(out)
        self.assertEqual(response.status_code, 301)
        self.assertEqual(response.headers["location"], "/pages/home")
        self.assertTrue(out.getvalue().startswith(b"Status: 301 Moved Permanently\r\n"))


class TestHealth(KernelTestCase):

    def test_health_summary(self):
        kernel = self.make_kernel()
        health = kernel.health()
        self.assertEqual(health["registered_modules"], ["kernel"])
        self.assertIn("jsl.kernel.kernel.Kernel", health["registered_services"])
        self.assertFalse(health["deferred_ran"])
        self.assertEqual(health["timezone"], "UTC")
        self.assertGreaterEqual(health["uptime_seconds"], 0)


if __name__ == "__main__":
    unittest.main()
