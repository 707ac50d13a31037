"""The recorded deploy walkthrough: log in, create an app, upload a build, start an instance, attach a domain."""

from collections.abc import Callable
from pathlib import Path

from pydantic import BaseModel
from pydantic import ConfigDict

from webcast.driver import WebCast

# The instance list renders ids as "instance-<id>"
INSTANCE_ID_PREFIX = "instance-"

SUBMIT_BUTTON = "button[type=submit]"
NEW_ITEM_BUTTON = "main button"
SUCCESS_ICON = "main ul>li svg.text-success"

Echo = Callable[[str], None]


class ScenarioError(Exception):
    """Raised when the application does not show what the walkthrough expects."""

    pass


class DeployDemoSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    base_url: str = "http://d1.cesbo.net"
    username: str = "admin"
    password: str = "admin"

    app_id: str = "demo"
    preset: str = "nuxt"

    build_name: str = "first build"
    archive_path: Path = Path("nuxt-demo.tar.gz")
    build_timeout_ms: int = 120_000

    instance_name: str = "main"
    port: str = "3000"

    domain_name: str = "demo.citrus.run"
    access_method: str = "cloudflare"

    # Pause before each step so viewers can follow what is about to happen
    look_around_delay_ms: int = 1000
    final_delay_ms: int = 2000

    intro_title: str | None = None
    intro_subtitle: str | None = None
    outro_title: str | None = None


def _pause(cast: WebCast, settings: DeployDemoSettings) -> None:
    cast.sleep(settings.look_around_delay_ms)


def _submit_form(cast: WebCast, settings: DeployDemoSettings, echo: Echo, label: str) -> None:
    echo(f"submit {label}")
    _pause(cast, settings)
    cast.element_scroll_into_view(SUBMIT_BUTTON)
    _pause(cast, settings)
    cast.element_click(SUBMIT_BUTTON)


def _open_section(cast: WebCast, settings: DeployDemoSettings, echo: Echo, label: str, nav_position: int) -> None:
    echo(f"navigate to {label}s")
    _pause(cast, settings)
    cast.element_click(f"nav > :nth-child({nav_position})")

    echo(f"navigate to new {label}")
    _pause(cast, settings)
    cast.element_click(NEW_ITEM_BUTTON)


def log_in_if_needed(cast: WebCast, settings: DeployDemoSettings, echo: Echo) -> bool:
    """Fill in the login form when the page shows one. Returns whether a login happened."""
    if not cast.element_exists("#password"):
        return False

    echo(f"log in as {settings.username}")
    _pause(cast, settings)
    cast.text_type("#name", settings.username)
    cast.text_type("#password", settings.password)

    _pause(cast, settings)
    cast.element_click("form button[type=submit]")
    return True


def create_app(cast: WebCast, settings: DeployDemoSettings, echo: Echo) -> None:
    echo("navigate to new app")
    _pause(cast, settings)
    cast.element_click(NEW_ITEM_BUTTON)

    echo("create new app")
    _pause(cast, settings)
    cast.text_type("#app_id", settings.app_id)

    echo("select preset")
    _pause(cast, settings)
    cast.element_select("#preset", settings.preset)

    _submit_form(cast, settings, echo, "new app")


def upload_build(cast: WebCast, settings: DeployDemoSettings, echo: Echo) -> None:
    _open_section(cast, settings, echo, "build", 5)

    echo("build name")
    _pause(cast, settings)
    cast.text_type("#build_name", settings.build_name)

    echo("build select archive")
    _pause(cast, settings)
    cast.element_file_select("input[type=file]", settings.archive_path)

    _submit_form(cast, settings, echo, "new build")

    cast.element_wait_for(SUCCESS_ICON, settings.build_timeout_ms)
    _pause(cast, settings)


def create_instance(cast: WebCast, settings: DeployDemoSettings, echo: Echo) -> str:
    """Create an instance from the uploaded build and return its id."""
    _open_section(cast, settings, echo, "instance", 4)

    echo("instance name")
    _pause(cast, settings)
    cast.text_type("#instance_name", settings.instance_name)

    echo("instance port")
    _pause(cast, settings)
    cast.text_type("#port", settings.port)

    _submit_form(cast, settings, echo, "new instance")

    cast.element_wait_for(SUCCESS_ICON)
    _pause(cast, settings)

    element_id = cast.element_get_attribute("main ul>li>div", "id")
    instance_id = element_id.removeprefix(INSTANCE_ID_PREFIX) if element_id else ""
    if not instance_id:
        raise ScenarioError("instance id not found")
    echo(f"instance id: {instance_id}")
    return instance_id


def attach_domain(cast: WebCast, settings: DeployDemoSettings, echo: Echo, instance_id: str) -> None:
    _open_section(cast, settings, echo, "domain", 3)

    echo("domain name")
    _pause(cast, settings)
    cast.text_type("#domain_name", settings.domain_name)

    echo("select instance")
    _pause(cast, settings)
    cast.element_select("#domain_instance", instance_id)

    echo("select access method")
    _pause(cast, settings)
    cast.element_select("#access", settings.access_method)
    # Choosing the access method fetches its options from the API
    cast.wait_for_network_idle()

    _submit_form(cast, settings, echo, "new domain")


def run_deploy_demo(cast: WebCast, settings: DeployDemoSettings, output_path: Path, echo: Echo) -> Path | None:
    """Record the whole walkthrough to `output_path` and return the saved video path."""
    if settings.intro_title is not None:
        cast.screencast(output_path)
        cast.splash(settings.intro_title, settings.intro_subtitle)
        cast.goto(settings.base_url)
    else:
        cast.goto(settings.base_url)
        cast.screencast(output_path)

    log_in_if_needed(cast, settings, echo)
    create_app(cast, settings, echo)
    upload_build(cast, settings, echo)
    instance_id = create_instance(cast, settings, echo)
    attach_domain(cast, settings, echo, instance_id)

    cast.sleep(settings.final_delay_ms)
    if settings.outro_title is not None:
        cast.splash(settings.outro_title)
    return cast.stop()
