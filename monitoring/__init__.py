"""Google Cloud Monitoring API access"""
