from .send import *
from .receive import *
from .spend import *
