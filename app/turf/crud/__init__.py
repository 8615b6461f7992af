"""Turf CRUD Package"""
