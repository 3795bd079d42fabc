from .payoffs import call_payoff, make_vanilla_payoff, put_payoff

__all__ = ["call_payoff", "put_payoff", "make_vanilla_payoff"]
