"""Job persistence core: models and the DynamoDB store."""
