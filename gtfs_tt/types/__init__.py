from . import input, public
