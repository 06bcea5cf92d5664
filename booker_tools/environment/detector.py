"""CI detection."""

import os

CI_VARIABLES = (
    "CI",
    "GITHUB_ACTIONS",
    "GITLAB_CI",
    "TRAVIS",
    "CIRCLECI",
    "JENKINS_URL",
    "BITBUCKET_BUILD_NUMBER",
)


class EnvironmentDetector:

    @staticmethod
    def is_running_in_ci() -> bool:
        """True when any well-known CI variable is set to a non-empty value."""
        return any(os.environ.get(name) for name in CI_VARIABLES)


__all__ = [
    "EnvironmentDetector",
    "CI_VARIABLES",
]
