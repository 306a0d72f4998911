"""Protocol-based interfaces for external collaborators.

Services depend on these protocols rather than on concrete transports so
tests can inject plain fakes.
"""

from quartermaster.interfaces.catalog import ICatalogSource
from quartermaster.interfaces.identity import IIdentityProvider

__all__ = ["ICatalogSource", "IIdentityProvider"]
