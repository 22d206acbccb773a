"""Health check for backend users."""

from __future__ import annotations

from diagnostics.models import DiagnosticResult, DiagnosticStatus
from storage.users import UserRepository

TITLE = "User"


def probe(user_repository: UserRepository | None = None) -> DiagnosticResult:
    user_repository = user_repository or UserRepository()
    if not user_repository.count():
        return DiagnosticResult(
            name=TITLE,
            status=DiagnosticStatus.FAIL,
            details=(
                "No user created yet. To create a user run "
                "`cms-setup user-create --roles Administrator admin admin Jon Doe`"
            ),
        )

    return DiagnosticResult(
        name=TITLE,
        status=DiagnosticStatus.PASS,
        details="At least one user exists",
    )
