"""Bid model, score function and blind-bid circuit"""
