"""Scrape pipeline and collectors"""
