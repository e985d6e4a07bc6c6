"""Binary symmetric model (BSM) variants."""
from .bsm2 import BSM2
from .bsm3 import BSM3
from .bsm4 import BSM4, bsm_lnl_func

__all__ = ["BSM2", "BSM3", "BSM4", "bsm_lnl_func"]
