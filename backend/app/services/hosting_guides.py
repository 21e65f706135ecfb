"""Manual deployment instructions for the static hosts we prepare bundles for."""
from typing import Any, Dict

NGINX_DOCKERFILE = """FROM nginx:alpine
COPY . /usr/share/nginx/html
EXPOSE 80
CMD ["nginx", "-g", "daemon off;"]
"""

HOSTING_GUIDES: Dict[str, Dict[str, Any]] = {
    "vercel": {
        "instructions": "Download your project and deploy using Vercel CLI or GitHub integration",
        "commands": ["npm install -g vercel", "vercel login", "vercel --prod"],
    },
    "netlify": {
        "instructions": "Deploy using Netlify Drop or CLI",
        "commands": ["npm install -g netlify-cli", "netlify login", "netlify deploy --prod"],
    },
    "render": {
        "instructions": "Deploy using Render GitHub integration",
        "commands": [],
        "dockerfile": NGINX_DOCKERFILE,
    },
    "railway": {
        "instructions": "Deploy using Railway CLI from the unzipped project folder",
        "commands": ["npm install -g @railway/cli", "railway login", "railway up"],
        "dockerfile": NGINX_DOCKERFILE,
    },
    "fleek": {
        "instructions": "Upload the unzipped folder to Fleek to host it on IPFS",
        "commands": ["npm install -g @fleek-platform/cli", "fleek login", "fleek sites deploy"],
    },
}

SSL_INSTRUCTIONS: Dict[str, Any] = {
    "provider": "letsencrypt",
    "steps": [
        "Most hosting providers (Vercel, Netlify, Render) provide automatic SSL",
        "For custom domains, SSL is automatically provisioned",
        "No manual configuration needed",
    ],
    "manual": [
        "Install Certbot: sudo apt-get install certbot",
        "Generate certificate: sudo certbot certonly --standalone -d yourdomain.com",
        "Certificates will be stored in /etc/letsencrypt/live/yourdomain.com/",
    ],
}


def get_hosting_guide(provider: str) -> Dict[str, Any]:
    """Return the guide for a host, with the provider name included."""
    guide = HOSTING_GUIDES[provider]
    return {"provider": provider, **guide}
