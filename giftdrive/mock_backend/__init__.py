"""In-memory stand-in for the donation cart API, used for local runs and tests"""
