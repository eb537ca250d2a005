"""Sample data generation for the flight booking service"""
