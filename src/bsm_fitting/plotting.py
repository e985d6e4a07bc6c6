from __future__ import annotations

from typing import Any, Mapping, Optional, Sequence, Tuple

import numpy as np


def plot_fit(
    *,
    ax: Optional[Any] = None,
    model: Any,
    t: Any,
    lnl: Any,
    w: Optional[Any] = None,
    tg: Optional[np.ndarray] = None,
    data_kwargs: Optional[Mapping[str, Any]] = None,
    line_kwargs: Optional[Mapping[str, Any]] = None,
    show_params: bool = False,
    param_names: Optional[Sequence[str]] = None,
    text_kwargs: Optional[Mapping[str, Any]] = None,
) -> Tuple[Any, Any]:
    """Plot normalized samples and the fitted model curve on a Matplotlib Axes.

    Parameters
    ----------
    ax : matplotlib.axes.Axes, optional
        If None, a new figure/axes is created.
    model : BSM2 or BSM3
        Anything with ``norm_lnl(t)``.
    t, lnl : array-like
        1D normalized samples.
    w : array-like, optional
        Sample weights; scales marker area when given.
    tg : ndarray, optional
        Grid for the model curve. Defaults to 400 points over the t range.
    data_kwargs, line_kwargs, text_kwargs : dict, optional
        Styling kwargs for scatter, plot, and text.
    show_params : bool
        If True, annotate fitted parameter values on the plot.
    param_names : sequence of str, optional
        Names to include in the parameter box. Defaults to the model's free names.
    """
    import matplotlib.pyplot as plt

    if ax is None:
        fig, ax = plt.subplots()
    else:
        fig = ax.figure

    data_kwargs = dict(data_kwargs or {})
    line_kwargs = dict(line_kwargs or {})
    text_kwargs = dict(text_kwargs or {})

    t_arr = np.asarray(t, dtype=float)
    lnl_arr = np.asarray(lnl, dtype=float)
    if t_arr.ndim != 1 or lnl_arr.ndim != 1:
        raise ValueError("plot_fit requires 1D t and lnl arrays.")
    if t_arr.shape != lnl_arr.shape:
        raise ValueError("plot_fit requires t and lnl to have the same shape.")

    if w is not None:
        w_arr = np.asarray(w, dtype=float)
        if w_arr.shape != t_arr.shape:
            raise ValueError("plot_fit requires w to have the same shape as t.")
        top = float(np.max(w_arr)) if w_arr.size else 1.0
        data_kwargs.setdefault("s", 15.0 + 60.0 * w_arr / (top if top > 0 else 1.0))
    data_kwargs.setdefault("label", "samples")
    data_kwargs.setdefault("zorder", 3)
    ax.scatter(t_arr, lnl_arr, **data_kwargs)

    if tg is None:
        tg = np.linspace(float(np.min(t_arr)), float(np.max(t_arr)), 400)
    line_kwargs.setdefault("label", type(model).__name__)
    ax.plot(tg, model.norm_lnl(tg), **line_kwargs)

    ax.set_xlabel("t")
    ax.set_ylabel("normalized log-likelihood")

    if show_params:
        names = list(param_names) if param_names is not None else list(model.free_names)
        lines = [f"{name}={float(getattr(model, name)):.4g}" for name in names]
        if lines:
            text_kwargs.setdefault("ha", "right")
            text_kwargs.setdefault("va", "top")
            text_kwargs.setdefault("fontsize", 9)
            text_kwargs.setdefault("transform", ax.transAxes)
            text_kwargs.setdefault(
                "bbox",
                {"boxstyle": "round", "facecolor": "white", "alpha": 0.7, "edgecolor": "none"},
            )
            ax.text(0.98, 0.98, "\n".join(lines), **text_kwargs)

    return fig, ax
