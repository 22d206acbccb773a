"""Setup wizard steps."""

from __future__ import annotations

from collections.abc import Callable
import logging
from pathlib import Path
from typing import Any, ClassVar

from config.settings import write_settings
from imaging.service import ImageHandlerService
from storage.packages import PackageManager, SiteKickstarter
from storage.sites import SiteImportService, SiteRepository
from storage.users import UserRepository
from wizard.forms import ElementType, FormDefinition
from wizard.validators import (
    NotEmptyValidator,
    PackageKeyValidator,
    StringLengthValidator,
    UserDoesNotExistValidator,
)

LOGGER = logging.getLogger(__name__)

ADMINISTRATOR_ROLE = "Administrator"
IMAGE_HANDLING_SETTINGS_FILE = "settings.imagehandling.yaml"


class SetupError(Exception):
    """Raised when a setup step cannot complete."""


class Step:
    """Base class for wizard steps.

    Subclasses fill the form in ``_build_form`` and persist submitted values in
    ``post_process_form_values``.
    """

    identifier: ClassVar[str] = "step"
    optional: bool = False

    def build_form(self) -> FormDefinition:
        form = FormDefinition(self.identifier)
        self._build_form(form)
        return form

    def _build_form(self, form: FormDefinition) -> None:
        raise NotImplementedError

    def post_process_form_values(self, values: dict[str, Any]) -> None:
        """Called when the form of this step has been submitted."""


class AdministratorStep(Step):
    identifier = "administrator"

    def __init__(self, user_repository: UserRepository) -> None:
        self.optional = True
        self.user_repository = user_repository

    def _build_form(self, form: FormDefinition) -> None:
        page1 = form.create_page("page1")
        page1.set_rendering_option("header", "Create administrator account")

        introduction = page1.create_element("introduction", ElementType.STATIC_TEXT)
        introduction.set_property("text", "Enter the personal data and credentials for your backend account:")

        personal_section = page1.create_element("personalSection", ElementType.SECTION)
        personal_section.set_label("Personal Data")

        first_name = personal_section.create_element("firstName", ElementType.SINGLE_LINE_TEXT)
        first_name.set_label("First name")
        first_name.add_validator(NotEmptyValidator())
        first_name.add_validator(StringLengthValidator(minimum=1, maximum=255))

        last_name = personal_section.create_element("lastName", ElementType.SINGLE_LINE_TEXT)
        last_name.set_label("Last name")
        last_name.add_validator(NotEmptyValidator())
        last_name.add_validator(StringLengthValidator(minimum=1, maximum=255))

        credentials_section = page1.create_element("credentialsSection", ElementType.SECTION)
        credentials_section.set_label("Credentials")

        username = credentials_section.create_element("username", ElementType.SINGLE_LINE_TEXT)
        username.set_label("Username")
        username.add_validator(NotEmptyValidator())
        username.add_validator(UserDoesNotExistValidator(self.user_repository))

        password = credentials_section.create_element("password", ElementType.PASSWORD_WITH_CONFIRMATION)
        password.add_validator(NotEmptyValidator())
        password.add_validator(StringLengthValidator(minimum=6, maximum=255))
        password.set_label("Password")
        password.set_property("passwordDescription", "At least 6 characters")

        form.set_rendering_option(
            "skipStepNotice",
            "If you skip this step make sure that you have an existing user "
            "or create one with the user-create command",
        )

    def post_process_form_values(self, values: dict[str, Any]) -> None:
        self.user_repository.create_user(
            values["username"],
            values["password"],
            values["firstName"],
            values["lastName"],
            [ADMINISTRATOR_ROLE],
        )
        LOGGER.info("Created administrator %s", values["username"])


class ImageHandlerStep(Step):
    """Select the best usable image driver and store it in the settings."""

    identifier = "imagehandler"

    def __init__(
        self,
        image_handler_service: ImageHandlerService,
        settings_file: Path,
        on_settings_written: Callable[[], None] | None = None,
    ) -> None:
        self.image_handler_service = image_handler_service
        self.settings_file = settings_file
        self.on_settings_written = on_settings_written
        self.written_settings = ""

    def _build_form(self, form: FormDefinition) -> None:
        page1 = form.create_page("page1")
        page1.set_rendering_option("header", "Image handling requirements check")

        image_section = page1.create_element("imageSection", ElementType.SECTION)
        image_section.set_label("Image Manipulation")

        info = image_section.create_element("imageLibrariesInfo", ElementType.STATIC_TEXT)
        info.set_property(
            "text",
            "We checked for supported image manipulation libraries on your server. "
            "Only one is needed and we select the best one available for you. "
            "Using Gd (Pillow) in production is not recommended as it is slow and memory hungry.",
        )
        info.set_property("elementClassAttribute", "alert alert-primary")

        diagnostics = self.image_handler_service.determine_availability()
        for index, entry in enumerate(diagnostics):
            descriptor = entry.descriptor
            element = image_section.create_element(f"imageHandler{index}", ElementType.STATIC_TEXT)
            if entry.is_ready:
                element.set_property("text", f'"{descriptor.driver_name}" {descriptor.description} is usable')
                element.set_property("elementClassAttribute", "alert alert-info")
            else:
                reasons = " ".join(entry.status_details)
                element.set_property(
                    "text",
                    f'"{descriptor.driver_name}" {descriptor.description} is not usable: {reasons}',
                )
                element.set_property("elementClassAttribute", "alert alert-default")

        preferred = diagnostics.preferred_driver_name()
        if preferred is None:
            element = image_section.create_element("noImageLibrary", ElementType.STATIC_TEXT)
            element.set_property(
                "text",
                "No suitable image manipulation library was found. Please install one of the "
                "supported libraries and proceed with the setup.",
            )
            element.set_property("elementClassAttribute", "alert alert-error")
            return

        element = image_section.create_element("configuredImageLibrary", ElementType.STATIC_TEXT)
        element.set_property("text", f'The image driver will be configured to use "{preferred}"')
        element.set_property("elementClassAttribute", "alert alert-success")
        hidden_field = image_section.create_element("imagingDriver", ElementType.HIDDEN_FIELD)
        hidden_field.set_default_value(preferred)

    def post_process_form_values(self, values: dict[str, Any]) -> None:
        driver = values.get("imagingDriver")
        if not driver:
            raise SetupError("No usable image driver was found, nothing was configured")

        self.written_settings = write_settings(
            self.settings_file,
            "imaging",
            {"driver": driver, "enabled_drivers": {driver: True}},
        )
        if self.on_settings_written is not None:
            self.on_settings_written()


class SiteImportStep(Step):
    """Import a site from a site package, or kickstart a new one."""

    identifier = "site"

    def __init__(
        self,
        package_manager: PackageManager,
        site_repository: SiteRepository,
        site_import_service: SiteImportService,
        kickstarter: SiteKickstarter,
    ) -> None:
        self.optional = True
        self.package_manager = package_manager
        self.site_repository = site_repository
        self.site_import_service = site_import_service
        self.kickstarter = kickstarter

    def _build_form(self, form: FormDefinition) -> None:
        page1 = form.create_page("page1")
        page1.set_rendering_option("header", "Create a new site")

        introduction = page1.create_element("introduction", ElementType.STATIC_TEXT)
        introduction.set_property("text", "There are two ways of creating a site. Choose between the following:")

        import_section = page1.create_element("import", ElementType.SECTION)
        import_section.set_label("Import a site from an existing site package")

        site_packages = {package.key: package.key for package in self.package_manager.get_site_packages()}

        if site_packages:
            site = import_section.create_element("site", ElementType.SINGLE_SELECT_DROPDOWN)
            site.set_label("Select a site package")
            site.set_property("options", site_packages)

            if self.site_repository.count() > 0:
                prune = import_section.create_element("prune", ElementType.CHECKBOX)
                prune.set_label("Delete existing sites")
        else:
            error = import_section.create_element("noSitePackagesError", ElementType.STATIC_TEXT)
            error.set_property("text", "No site packages were available, make sure you have an active site package")
            error.set_property("elementClassAttribute", "alert alert-warning")

        separator = page1.create_element("separator", ElementType.STATIC_TEXT)
        separator.set_property("elementClassAttribute", "section-separator")

        new_package_section = page1.create_element("newPackageSection", ElementType.SECTION)
        new_package_section.set_label("Create a new site package with a dummy site")

        package_key = new_package_section.create_element("packageKey", ElementType.SINGLE_LINE_TEXT)
        package_key.set_label('Package Name (in form "Vendor.DomainCom")')
        package_key.add_validator(PackageKeyValidator())

        site_name = new_package_section.create_element("siteName", ElementType.SINGLE_LINE_TEXT)
        site_name.set_label('Site Name (e.g. "domain.com")')

        explanation = page1.create_element("sitePackageExplanation", ElementType.STATIC_TEXT)
        explanation.set_property(
            "text",
            "Notice the difference between a site package and a site. A site package is a package "
            "that can be used for creating multiple site instances.",
        )
        explanation.set_property("elementClassAttribute", "alert alert-info")

        if site_packages:
            already_available = page1.create_element("sitePackageAlreadyAvailableExplanation", ElementType.STATIC_TEXT)
            already_available.set_property(
                "text",
                f"There are already other site packages available ({', '.join(site_packages)}). "
                "Make sure you remove the site packages you don't want to interfere with your "
                "newly created package.",
            )
            already_available.set_property("elementClassAttribute", "alert alert-info")

        form.add_finisher(self.import_site)
        form.set_rendering_option("skipStepNotice", "You can always import a site using the site-import command")

    def import_site(self, values: dict[str, Any]) -> None:
        if values.get("prune"):
            self.site_repository.remove_all()

        package_key = None
        if values.get("packageKey"):
            package_key = values["packageKey"]
            if self.package_manager.is_package_available(package_key):
                raise SetupError(f'The package key "{package_key}" already exists.')
            self.kickstarter.generate_site_package(package_key, values.get("siteName") or package_key)
        elif values.get("site"):
            package_key = values["site"]

        if not package_key:
            return

        try:
            self.site_import_service.import_from_package(package_key)
        except Exception as exc:
            LOGGER.exception("Site import from %s failed", package_key)
            raise SetupError(
                f'Error: During the import of the sites from the package "{package_key}" '
                f"an exception occurred: {exc}"
            ) from exc
