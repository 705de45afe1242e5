"""
Service layer

Concrete collaborators around the engine:
- SqlMatchMirror: durable copy of matches and their events
- SqlRoster: player lookup for goal attribution
- LiveSessionManager: one open controller per live match
"""
