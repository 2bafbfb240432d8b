import os

from moxie.config import TEST_BUILD_ENV

# Same as the installed pytest plugin, for runs from a plain checkout.
os.environ.setdefault(TEST_BUILD_ENV, "1")
