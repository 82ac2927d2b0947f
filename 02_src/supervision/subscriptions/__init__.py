"""Subscription reconciler module."""

from .reconciler import SubscriptionReconciler, desired_topics, diff_topics

__all__ = ["SubscriptionReconciler", "desired_topics", "diff_topics"]
