"""Bayesian update helpers.

One update applies Bayes' rule for a binary hypothesis:

    posterior = (L_true * prior) / (L_true * prior + L_false * (1 - prior))

where L_true = P(evidence | issue present) and L_false =
P(evidence | issue absent). Sequential fusion feeds each posterior in as the
next prior, which assumes the pieces of evidence are conditionally
independent.

Every function here is total: inputs are clamped into [0, 1], NaN is read as
0.0, and a zero denominator resolves to the prior's boundary value. No
caller ever sees an exception or a value outside [0, 1].
"""

import math

UNINFORMATIVE_LIKELIHOOD = 0.5


def clamp_unit(value: float) -> float:
    """Clamp to [0.0, 1.0], mapping NaN to 0.0."""
    if math.isnan(value):
        return 0.0
    return max(0.0, min(1.0, value))


def bayesian_update(prior: float, likelihood_given_true: float,
                    likelihood_given_false: float) -> float:
    """Return P(issue | evidence) for one piece of evidence.

    If the denominator is zero — both likelihoods zero, or the prior sits at
    an extreme whose only likelihood is zero — there is nothing to update
    from, and the result snaps to the prior's boundary (1.0 for a prior of
    at least 0.5, else 0.0).
    """
    prior = clamp_unit(prior)
    l_true = clamp_unit(likelihood_given_true)
    l_false = clamp_unit(likelihood_given_false)

    numerator = l_true * prior
    denominator = numerator + l_false * (1.0 - prior)
    if denominator <= 0.0:
        return 1.0 if prior >= 0.5 else 0.0

    return clamp_unit(numerator / denominator)


def weighted_likelihoods(likelihood_given_true: float, likelihood_given_false: float,
                         symptom_present: bool, reliability: float) -> tuple[float, float]:
    """Likelihood pair for one observation, adjusted for direction and trust.

    An absent symptom uses the complements (1 - L). Reliability r blends both
    likelihoods toward 0.5, so r = 1.0 applies the full update and r = 0.0
    leaves the prior unchanged.
    """
    l_true = clamp_unit(likelihood_given_true)
    l_false = clamp_unit(likelihood_given_false)
    if not symptom_present:
        l_true, l_false = 1.0 - l_true, 1.0 - l_false

    r = clamp_unit(reliability)
    return (
        r * l_true + (1.0 - r) * UNINFORMATIVE_LIKELIHOOD,
        r * l_false + (1.0 - r) * UNINFORMATIVE_LIKELIHOOD,
    )
