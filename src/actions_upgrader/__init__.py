"""Keep GitHub Actions references current across an organization."""

from importlib import metadata

try:
    version = metadata.version('actions-upgrader')
except metadata.PackageNotFoundError:
    version = '0.0.0'
