"""Relational store: declarative base, engine construction and schema setup."""
