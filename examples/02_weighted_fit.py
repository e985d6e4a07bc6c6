import numpy as np
from bsm_fitting import BSM2, BSM4, compute_weights, fit_weighted


truth = BSM4(c=5.0, m=2.0, r=0.8, b=0.3)
reduced = truth.to_bsm2()
t0, d2 = reduced.t0, reduced.d2
print(f"maximum at t0 = {t0:.4f}, curvature d2 = {d2:.4f}")

t = np.linspace(0.0, 5.0, 12)
raw = truth.lnl(t)
lnl = raw - truth.lnl(t0)

# alpha = 0 weighs every sample equally; larger alpha favors the peak.
for alpha in (0.0, 1.0, 4.0):
    w, _ = compute_weights(lnl, alpha)
    model = BSM2(c=8.0, m=2.5, t0=t0, d1=0.0, d2=d2)
    status = fit_weighted(t, lnl, w, model)
    rsse = float(np.sqrt(np.sum(w * (lnl - model.norm_lnl(t)) ** 2)))
    print(f"alpha={alpha:.1f}: {status.name:<10s} c={model.c:.4f} m={model.m:.4f} rsse={rsse:.2e}")
