import numpy as np
import matplotlib.pyplot as plt
from bsm_fitting import BSM3, BSM4, fit, numeric, plot_fit


truth = BSM4(c=3.0, m=1.0, r=1.6, b=0.25)
seed = truth.to_bsm3()

rng = np.random.default_rng(3)
t = np.linspace(0.0, 2.5, 15)
lnl = truth.lnl(t) - truth.lnl(0.0) + rng.normal(0.0, 0.01, size=t.size)
lnl[0] = 0.0

model = BSM3(c=2.5, m=1.2, theta_b=1.6, d1=seed.d1)
status = fit(t, lnl, model)
print("status:", status.name, model)
if not status.success:
    raise SystemExit(1)

# Locate the maximum numerically and compare with the closed form.
t_max = numeric.minimize(lambda x: -float(model.lnl(x)), 0.5, 0.0, 2.5, tolerance=1e-8, method="bounded")
print(f"numeric maximum at t = {t_max:.5f}, closed form {model.to_bsm4().ml_t():.5f}")

fig, ax = plot_fit(model=model, t=t, lnl=lnl, show_params=True)
ax.axvline(t_max, color="k", ls=":", lw=1, label="maximum")
ax.legend()
plt.show()
