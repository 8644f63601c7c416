"""Deployment of built packages to a connected device."""

from .deployer import AdbDeployer, DeploymentError, DeploymentResult

__all__ = ["AdbDeployer", "DeploymentError", "DeploymentResult"]
