"""
followstore: data access for follow relationships stored in DynamoDB.
"""

__version__ = "0.1.0"
