from routers import comments, dashboard, likes, playlists, subscriptions, tweets, users, videos

all_routers = [
    users.router,
    videos.router,
    comments.router,
    likes.router,
    subscriptions.router,
    playlists.router,
    tweets.router,
    dashboard.router,
]
