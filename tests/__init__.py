"""
Suite de tests para la carga de fixtures MongoDB.

Los tests unitarios NO necesitan un servidor: usan FakeDatabase (helpers.py).
test_live_mongo.py corre contra MONGO_URI y se saltea si no hay servidor.
"""
