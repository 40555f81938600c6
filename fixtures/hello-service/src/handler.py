from lib.text import shout


def greet(event, context):
    return {"statusCode": 200, "body": shout("hello")}


def report(event, context):
    return {"statusCode": 200, "body": "ok"}
