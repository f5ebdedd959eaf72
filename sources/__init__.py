# Importing the package registers the built-in sources
from . import apollo  # noqa: F401
from . import mock  # noqa: F401
