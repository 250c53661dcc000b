"""Bairro - citizen occurrence reporting backend"""
