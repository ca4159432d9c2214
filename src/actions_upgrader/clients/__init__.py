from .github import GitHub
from .http import BaseURLHTTPClient

__all__ = ['BaseURLHTTPClient', 'GitHub']
