"""Resolver module - runner and project library paths."""

from .coordinate import (
    DependencyCoordinate,
    RepositoryMirror,
    RepositoryProxy,
    RepositoryServer,
    RepositorySettings,
)
from .pip_resolver import DependencyResolver, runner_coordinate
from .project_env import ProjectEnvironment

__all__ = [
    "DependencyCoordinate",
    "RepositoryMirror",
    "RepositoryProxy",
    "RepositoryServer",
    "RepositorySettings",
    "DependencyResolver",
    "runner_coordinate",
    "ProjectEnvironment",
]
