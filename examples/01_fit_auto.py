import numpy as np
from bsm_fitting import BSM3, BSM4, FitStatus, StreamDiagnostics, fit_auto


# Stand-in for an expensive likelihood over a branch length t.
truth = BSM4(c=3.0, m=1.0, r=1.2, b=0.6)


def lnl_fn(t):
    return float(truth.lnl(t)) - 50.0


# The slope at t = 0 is assumed known up front.
d1 = float(truth.dlnl(0.0))
model = BSM3(c=4.0, m=1.5, theta_b=2.5, d1=d1)

status = fit_auto(lnl_fn, model, 0.0, 8.0, alpha=0.5, diagnostics=StreamDiagnostics())
print("status:", status.name)

if status is FitStatus.CONVERGED:
    fitted = model.to_bsm4()
    print("fitted:", fitted)
    print("truth: ", truth)
    tg = np.linspace(0.0, 8.0, 5)
    print("max |fit - truth| on grid:", np.max(np.abs(
        (fitted.lnl(tg) - fitted.lnl(0.0)) - (truth.lnl(tg) - truth.lnl(0.0))
    )))
