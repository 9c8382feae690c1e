"""Donor-facing storefront service: cart, needs and checkout"""
