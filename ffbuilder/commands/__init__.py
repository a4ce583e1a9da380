from .build import build
from .resolve import resolve
from .universal import universal
from .package import package
from .doctor import doctor
from .clean import clean
from .init import init
from .config import config
from .log import log
from .version import version
