"""HTTP server"""
