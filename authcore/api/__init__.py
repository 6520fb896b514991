"""Delivery-layer helpers shared by the host application's route handlers."""
